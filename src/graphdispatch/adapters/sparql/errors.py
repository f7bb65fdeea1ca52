"""Persist error records as ``oslc:Error`` resources."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Final

from graphdispatch.domain.model import IRI, Fact, Literal

from .encoding import encode_iri, encode_triples
from .namespaces import expand

if TYPE_CHECKING:
    from collections.abc import Callable

    from .client import SparqlClient

ERROR_CREATOR: Final[str] = "Verenigingen graph dispatcher service"


class SparqlErrorSink:
    def __init__(
        self,
        client: SparqlClient,
        *,
        error_graph: str,
        error_base: str,
        make_id: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._client = client
        self._error_graph = IRI(error_graph)
        self._error_base = error_base
        self._make_id = make_id

    def error_facts(self, message: str) -> list[Fact]:
        error_id = self._make_id()
        error = IRI(f"{self._error_base}{error_id}")
        return [
            Fact(error, IRI(expand("rdf", "type")), IRI(expand("oslc", "Error"))),
            Fact(error, IRI(expand("mu", "uuid")), Literal(error_id)),
            Fact(error, IRI(expand("dct", "creator")), Literal(ERROR_CREATOR)),
            Fact(error, IRI(expand("oslc", "message")), Literal(message)),
        ]

    async def record_error(self, message: str) -> None:
        await self._client.update(
            f"""
            INSERT DATA {{
              GRAPH {encode_iri(self._error_graph.value)} {{
                {encode_triples(self.error_facts(message))}
              }}
            }}
            """
        )
