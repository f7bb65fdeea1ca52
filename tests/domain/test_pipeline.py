from __future__ import annotations

import asyncio

import pytest

from graphdispatch.app import build_processor
from graphdispatch.config import DispatchConfig, GraphConfig
from graphdispatch.domain.errors import FatalMutationError
from graphdispatch.domain.model import Changeset
from graphdispatch.domain.ownership import OwnershipPath
from graphdispatch.domain.pipeline import DeltaProcessor
from graphdispatch.domain.results import Outcome, Placed, Removed

from tests.support.memory_store import ASSOCIATION, InMemoryStore, fact, iri, no_sleep, typed


@pytest.fixture
def processor(
    store: InMemoryStore,
    dispatch_config: DispatchConfig,
    ownership_paths: tuple[OwnershipPath, ...],
) -> DeltaProcessor:
    return build_processor(
        store=store,
        lookup=store,
        config=dispatch_config,
        paths=ownership_paths,
        sleep=no_sleep,
    )


def test_inserted_changeset_places_its_subjects(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    association = iri("association/1")
    staged = (
        typed(association, ASSOCIATION, graphs.inserts),
        fact(association, "name", "Chess club", graphs.inserts),
    )
    store.add(*staged)
    store.set_owners(association, "association", ["org-a"])

    report = asyncio.run(processor.process_changesets([Changeset(inserts=staged)]))

    assert [result.outcome for result in report.inserts] == [Outcome.PLACED]
    assert report.deletes == []
    assert report.placed_any
    partition = graphs.partition_graph("org-a")
    assert store.graph(partition) == {item.in_graph(partition) for item in staged}
    assert store.graph(graphs.inserts) == set()


def test_facts_outside_the_staging_graphs_are_ignored(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    elsewhere = graphs.partition_graph("org-a")
    changeset = Changeset(
        inserts=(fact(iri("association/1"), "name", "Chess club", elsewhere),),
        deletes=(fact(iri("association/1"), "name", "Old name", elsewhere),),
    )

    report = asyncio.run(processor.process_changesets([changeset]))

    assert report.results == []
    assert store.calls == []


def test_replaying_a_changeset_does_not_change_the_outcome(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    association = iri("association/1")
    staged = (typed(association, ASSOCIATION, graphs.inserts),)
    store.add(*staged)
    store.set_owners(association, "association", ["org-a"])
    changesets = [Changeset(inserts=staged)]

    asyncio.run(processor.process_changesets(changesets))
    state = dict(store.quads)
    asyncio.run(processor.process_changesets(changesets))

    assert store.quads == state


def test_changeset_kinds_are_processed_in_arrival_order(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    association = iri("association/1")
    kept = typed(association, ASSOCIATION, graphs.inserts)
    name = fact(association, "name", "Chess club", graphs.inserts)
    removal = name.in_graph(graphs.deletes)
    store.add(kept, name, removal)
    store.set_owners(association, "association", ["org-a"])
    partition = graphs.partition_graph("org-a")

    report = asyncio.run(
        processor.process_changesets(
            [Changeset(inserts=(kept, name)), Changeset(deletes=(removal,))]
        )
    )

    operations = [(call.operation, call.graph) for call in store.mutations()]
    assert operations[0] == ("insert", partition)
    assert isinstance(report.inserts[0], Placed)
    assert isinstance(report.deletes[0], Removed)
    assert set(report.deletes[0].graphs) == {partition, graphs.deletes}
    assert store.graph(partition) == {kept.in_graph(partition)}
    assert store.graph(graphs.deletes) == set()


def test_fatal_error_carries_the_results_gathered_so_far(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    association = iri("association/1")
    placed = typed(association, ASSOCIATION, graphs.inserts)
    stuck = fact(iri("association/2"), "name", "Unremovable", graphs.deletes)
    store.add(placed, stuck)
    store.set_owners(association, "association", ["org-a"])
    store.fail_when = lambda _operation, graph, _batch: graph == graphs.deletes

    with pytest.raises(FatalMutationError) as excinfo:
        asyncio.run(
            processor.process_changesets(
                [Changeset(inserts=(placed,)), Changeset(deletes=(stuck,))]
            )
        )

    report = excinfo.value.report
    assert report is not None
    assert [result.outcome for result in report.inserts] == [Outcome.PLACED]
    assert excinfo.value.fact == stuck


def test_scan_reconciles_deletes_before_dispatching_inserts(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    partition = graphs.partition_graph("org-a")
    removal = fact(iri("association/1"), "name", "Old name", graphs.deletes)
    association = iri("association/2")
    staged = typed(association, ASSOCIATION, graphs.inserts)
    store.add(removal, removal.in_graph(partition), staged)
    store.set_owners(association, "association", ["org-a"])

    report = asyncio.run(processor.scan())

    assert [result.outcome for result in report.deletes] == [Outcome.REMOVED]
    assert [result.outcome for result in report.inserts] == [Outcome.PLACED]
    assert store.graph(partition) == {staged.in_graph(partition)}
    assert store.graph(graphs.deletes) == set()
    assert store.graph(graphs.inserts) == set()


def test_inserts_only_scan_leaves_staged_deletes_alone(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    removal = fact(iri("association/1"), "name", "Old name", graphs.deletes)
    store.add(removal)

    report = asyncio.run(processor.scan(include_deletes=False))

    assert report.results == []
    assert store.graph(graphs.deletes) == {removal}
    assert [call.operation for call in store.calls] == ["subjects"]


def test_scan_retries_what_was_pending(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    association = iri("association/1")
    staged = typed(association, ASSOCIATION, graphs.inserts)
    store.add(staged)

    first = asyncio.run(processor.scan(include_deletes=False))
    store.set_owners(association, "association", ["org-a"])
    second = asyncio.run(processor.scan(include_deletes=False))

    assert [result.outcome for result in first.inserts] == [Outcome.PENDING]
    assert [result.outcome for result in second.inserts] == [Outcome.PLACED]
    assert store.graph(graphs.inserts) == set()


def test_rescanning_unresolved_data_repeats_the_outcomes(
    store: InMemoryStore, graphs: GraphConfig, processor: DeltaProcessor
) -> None:
    waiting = iri("association/1")
    contested = iri("association/2")
    removal = fact(iri("person/1"), "name", "Ann", graphs.deletes)
    store.add(
        typed(waiting, ASSOCIATION, graphs.inserts),
        typed(contested, ASSOCIATION, graphs.inserts),
        removal,
        removal.in_graph(graphs.partition_graph("org-a")),
        removal.in_graph(graphs.partition_graph("org-b")),
    )
    store.set_owners(contested, "association", ["org-a", "org-b"])

    first = asyncio.run(processor.scan())
    state = dict(store.quads)
    second = asyncio.run(processor.scan())

    assert second == first
    assert sorted(result.outcome for result in first.results) == [
        Outcome.AMBIGUOUS,
        Outcome.AMBIGUOUS,
        Outcome.PENDING,
    ]
    assert store.quads == state
    assert store.mutations() == []
