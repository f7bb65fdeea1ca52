from __future__ import annotations

import asyncio

import httpx
import pytest

from graphdispatch.adapters.sparql import (
    SparqlClient,
    SparqlErrorSink,
    SparqlTripleStore,
    wait_for_store,
)
from graphdispatch.adapters.sparql.errors import ERROR_CREATOR
from graphdispatch.domain.errors import StoreError

from tests.support.sparql_endpoint import FakeSparqlEndpoint, select_result, sparql_config


def _client(endpoint: FakeSparqlEndpoint) -> SparqlClient:
    return SparqlClient(sparql_config(), client_factory=endpoint.client_factory())


def test_error_record_is_an_oslc_error_in_the_error_graph() -> None:
    endpoint = FakeSparqlEndpoint()
    sink = SparqlErrorSink(
        _client(endpoint),
        error_graph="http://lblod.data.gift/errors",
        error_base="http://data.lblod.info/errors/",
        make_id=lambda: "abc",
    )

    asyncio.run(sink.record_error('Triple "x" could not be removed'))

    (update,) = endpoint.updates
    error = "<http://data.lblod.info/errors/abc>"
    assert "GRAPH <http://lblod.data.gift/errors>" in update
    assert f"{error} <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> " in update
    assert "<http://open-services.net/ns/core#Error>" in update
    assert f'{error} <http://mu.semte.ch/vocabularies/core/uuid> "abc" .' in update
    assert f'"{ERROR_CREATOR}"' in update
    assert '"Triple \\"x\\" could not be removed"' in update


def test_wait_for_store_retries_until_the_store_answers() -> None:
    endpoint = FakeSparqlEndpoint()
    endpoint.reply(httpx.Response(503), httpx.Response(503), select_result())
    slept: list[float] = []

    async def sleep(seconds: float) -> None:
        slept.append(seconds)

    attempts = asyncio.run(
        wait_for_store(SparqlTripleStore(_client(endpoint)), interval_seconds=2, sleep=sleep)
    )

    assert attempts == 3
    assert slept == [10, 10]


def test_wait_for_store_gives_up_after_max_attempts() -> None:
    endpoint = FakeSparqlEndpoint()
    endpoint.reply(httpx.Response(503), httpx.Response(503))

    async def sleep(_seconds: float) -> None:
        return None

    with pytest.raises(StoreError):
        asyncio.run(
            wait_for_store(
                SparqlTripleStore(_client(endpoint)),
                interval_seconds=1,
                sleep=sleep,
                max_attempts=2,
            )
        )
    assert len(endpoint.requests) == 2
