from __future__ import annotations

import asyncio
import logging

import pytest

from graphdispatch.adapters.sparql import SparqlClient, SparqlTripleStore
from graphdispatch.domain.errors import StoreError
from graphdispatch.domain.model import IRI, XSD_STRING, BlankNode, Fact, Literal, SubjectType
from graphdispatch.domain.ownership import OwnershipPath
from graphdispatch.domain.ports import OwnershipLookup, TripleStore

from tests.support.sparql_endpoint import (
    FakeSparqlEndpoint,
    literal,
    select_result,
    sparql_config,
    uri,
)

GRAPH = IRI("http://mu.semte.ch/graphs/ingest-inserts")
PARTITION = IRI("http://mu.semte.ch/graphs/organizations/org-a")
SUBJECT = IRI("http://example.org/association/1")
NAME = IRI("http://example.org/name")
SITE = IRI("http://example.org/site")


@pytest.fixture
def endpoint() -> FakeSparqlEndpoint:
    return FakeSparqlEndpoint()


def _store(endpoint: FakeSparqlEndpoint, **kwargs: int) -> SparqlTripleStore:
    client = SparqlClient(sparql_config(), client_factory=endpoint.client_factory())
    return SparqlTripleStore(client, **kwargs)


def test_types_are_looked_up_in_chunks(endpoint: FakeSparqlEndpoint) -> None:
    subjects = [IRI(f"http://example.org/s{index}") for index in range(3)]
    endpoint.reply(
        select_result(
            {"subject": uri("http://example.org/s0"), "type": uri("http://example.org/T")}
        ),
        select_result(),
    )
    store = _store(endpoint, lookup_chunk_size=2)

    found = asyncio.run(store.types_for_subjects([*subjects, BlankNode("b0")]))

    assert found == [SubjectType(subjects[0], IRI("http://example.org/T"))]
    assert len(endpoint.queries) == 2
    assert "<http://example.org/s0> <http://example.org/s1>" in endpoint.queries[0]
    assert "_:b0" not in "".join(endpoint.queries)


def test_staged_subjects_and_their_facts(endpoint: FakeSparqlEndpoint) -> None:
    endpoint.reply(
        select_result({"subject": uri(SUBJECT.value)}),
        select_result(
            {"p": uri(NAME.value), "o": literal("Chess club")},
            {"p": uri(SITE.value), "o": uri("http://example.org/site/1")},
        ),
    )
    store = _store(endpoint)

    subjects = asyncio.run(store.staged_subjects(GRAPH))
    facts = asyncio.run(store.facts_for_subject(SUBJECT, GRAPH))

    assert subjects == [SUBJECT]
    assert facts == [
        Fact(SUBJECT, NAME, Literal("Chess club"), GRAPH),
        Fact(SUBJECT, SITE, IRI("http://example.org/site/1"), GRAPH),
    ]
    assert f"GRAPH <{GRAPH.value}>" in endpoint.queries[1]
    assert f"<{SUBJECT.value}> ?p ?o" in endpoint.queries[1]


def test_graph_lookup_matches_both_string_spellings(endpoint: FakeSparqlEndpoint) -> None:
    staged = Fact(SUBJECT, NAME, Literal("Chess club"), GRAPH)
    row = {"s": uri(SUBJECT.value), "p": uri(NAME.value), "o": literal("Chess club")}
    endpoint.reply(
        select_result(
            {**row, "g": uri(GRAPH.value)},
            {**row, "g": uri(PARTITION.value)},
            {**row, "g": uri(PARTITION.value)},
        )
    )
    store = _store(endpoint)

    occurrences = asyncio.run(store.graphs_for_facts([staged]))

    assert occurrences == [staged, staged.in_graph(PARTITION)]
    (query,) = endpoint.queries
    assert '"Chess club")' in query
    assert f'"Chess club"^^<{XSD_STRING}>)' in query


def test_all_graphs_of_a_staging_graph(endpoint: FakeSparqlEndpoint) -> None:
    row = {"s": uri(SUBJECT.value), "p": uri(SITE.value), "o": uri("http://example.org/x")}
    endpoint.reply(select_result({**row, "g": uri(GRAPH.value)}))
    store = _store(endpoint)

    (occurrence,) = asyncio.run(store.facts_with_all_graphs(GRAPH))

    assert occurrence == Fact(SUBJECT, SITE, IRI("http://example.org/x"), GRAPH)
    assert f"GRAPH <{GRAPH.value}> {{ ?s ?p ?o . }}" in endpoint.queries[0]
    assert "GRAPH ?g { ?s ?p ?o . }" in endpoint.queries[0]


def test_insert_data_targets_the_graph(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)

    asyncio.run(
        store.insert_facts(PARTITION, [Fact(SUBJECT, NAME, Literal("Chess club"), GRAPH)])
    )

    (update,) = endpoint.updates
    assert "INSERT DATA" in update
    assert f"GRAPH <{PARTITION.value}>" in update
    assert f'<{SUBJECT.value}> <{NAME.value}> "Chess club" .' in update


def test_delete_spells_out_string_literals_in_a_second_operation(
    endpoint: FakeSparqlEndpoint,
) -> None:
    store = _store(endpoint)
    facts = [
        Fact(SUBJECT, NAME, Literal("Chess club")),
        Fact(SUBJECT, SITE, IRI("http://example.org/site/1")),
    ]

    asyncio.run(store.delete_facts(GRAPH, facts))

    (update,) = endpoint.updates
    plain, explicit = update.split(" ;\n")
    assert plain.count("DELETE DATA") == 1
    assert '"Chess club" .' in plain
    assert "<http://example.org/site/1>" in plain
    assert f'"Chess club"^^<{XSD_STRING}> .' in explicit
    assert "site/1" not in explicit


def test_resource_only_delete_is_a_single_operation(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)

    asyncio.run(store.delete_facts(GRAPH, [Fact(SUBJECT, SITE, IRI("http://example.org/s"))]))

    assert " ;\n" not in endpoint.updates[0]


def test_empty_mutations_send_nothing(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)

    asyncio.run(store.insert_facts(GRAPH, []))
    asyncio.run(store.delete_facts(GRAPH, []))

    assert endpoint.requests == []


def test_owner_tokens_bind_the_subject_into_the_path(endpoint: FakeSparqlEndpoint) -> None:
    endpoint.reply(select_result({"token": literal("org-a")}, {"token": literal("org-b")}))
    store = _store(endpoint)
    path = OwnershipPath(type="http://example.org/T", path="?association ext:has ?subject .")

    tokens = asyncio.run(store.owner_tokens(SUBJECT, path))

    assert tokens == ["org-a", "org-b"]
    query = endpoint.queries[0]
    assert f"BIND(<{SUBJECT.value}> AS ?subject)" in query
    assert "?association ext:has ?subject ." in query
    assert "mu:uuid ?token" in query


def test_blank_node_owners_are_not_looked_up(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)
    path = OwnershipPath(type="http://example.org/T", path="?association ext:has ?subject .")

    assert asyncio.run(store.owner_tokens(BlankNode("b0"), path)) == []
    assert endpoint.requests == []


def test_unexpected_bindings_become_store_errors(endpoint: FakeSparqlEndpoint) -> None:
    endpoint.reply(select_result({"other": uri(SUBJECT.value)}))
    store = _store(endpoint)

    with pytest.raises(StoreError, match="Unexpected SPARQL binding"):
        asyncio.run(store.staged_subjects(GRAPH))


def test_sparql_store_implements_the_domain_ports(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)

    assert isinstance(store, TripleStore)
    assert isinstance(store, OwnershipLookup)


def test_subjects_that_cannot_be_written_are_not_looked_up(
    endpoint: FakeSparqlEndpoint, caplog: pytest.LogCaptureFixture
) -> None:
    broken = IRI("http://example.org/has space")
    endpoint.reply(select_result({"subject": uri(SUBJECT.value), "type": uri(SITE.value)}))
    store = _store(endpoint)

    with caplog.at_level(logging.WARNING, logger="graphdispatch.adapters.sparql.store"):
        found = asyncio.run(store.types_for_subjects([broken, SUBJECT]))

    assert found == [SubjectType(SUBJECT, SITE)]
    (query,) = endpoint.queries
    assert "has space" not in query
    assert "cannot be written in SPARQL" in caplog.text


def test_staged_triples_that_cannot_be_written_are_skipped(endpoint: FakeSparqlEndpoint) -> None:
    broken = {"s": uri("http://example.org/has space"), "p": uri(NAME.value), "o": literal("x")}
    kept = {"s": uri(SUBJECT.value), "p": uri(NAME.value), "o": literal("x")}
    endpoint.reply(
        select_result({**broken, "g": uri(GRAPH.value)}, {**kept, "g": uri(GRAPH.value)})
    )
    store = _store(endpoint)

    occurrences = asyncio.run(store.facts_with_all_graphs(GRAPH))

    assert occurrences == [Fact(SUBJECT, NAME, Literal("x"), GRAPH)]


def test_writing_an_unencodable_iri_is_a_store_error(endpoint: FakeSparqlEndpoint) -> None:
    store = _store(endpoint)
    broken = Fact(IRI("http://example.org/has space"), NAME, Literal("x"))

    with pytest.raises(StoreError, match="Cannot serialise IRI"):
        asyncio.run(store.graphs_for_facts([broken]))
    assert endpoint.requests == []
