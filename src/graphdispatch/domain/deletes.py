"""Delete reconciliation: remove staged deletions from wherever they were placed."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import FatalMutationError
from .results import Ambiguous, Mode, Removed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphdispatch.config.dispatch import GraphConfig

    from .model import IRI, Fact, Triple
    from .mutation import BatchMutator
    from .ports.store import TripleStore
    from .results import DispatchResult

log = getLogger(__name__)

NOTHING_TO_REMOVE = "Triple was not found in any graph. Nothing to remove."


class DeleteReconciler:
    """Delete staged triples unless they sit in more than one partition.

    Triples carry no identity beyond their content, so a triple found in two
    partition graphs cannot be attributed to either. Those are reported as
    ``Ambiguous`` and left in place everywhere, staging included.
    """

    def __init__(
        self,
        *,
        store: TripleStore,
        mutator: BatchMutator,
        graphs: GraphConfig,
    ) -> None:
        self._store = store
        self._mutator = mutator
        self._graphs = graphs

    async def reconcile(self, facts: Sequence[Fact]) -> list[DispatchResult]:
        """Look up every graph holding ``facts`` and delete what is safe to delete."""

        if not facts:
            return []
        occurrences = await self._store.graphs_for_facts(facts)
        return await self.reconcile_occurrences(facts, occurrences)

    async def reconcile_occurrences(
        self,
        facts: Sequence[Fact],
        occurrences: Sequence[Fact],
    ) -> list[DispatchResult]:
        """Delete ``facts`` given every known ``occurrences`` of their triples."""

        graphs_by_triple: dict[Triple, list[IRI]] = {}
        for occurrence in occurrences:
            if occurrence.graph is None:
                continue
            graphs = graphs_by_triple.setdefault(occurrence.triple, [])
            if occurrence.graph not in graphs:
                graphs.append(occurrence.graph)

        results: list[DispatchResult] = []
        deletable: dict[IRI, list[Fact]] = {}
        handled: set[Triple] = set()
        for fact in facts:
            if fact.triple in handled:
                continue
            handled.add(fact.triple)
            graphs = graphs_by_triple.get(fact.triple, [])
            partitions = [graph for graph in graphs if self._graphs.is_partition(graph)]
            if len(partitions) > 1:
                results.append(
                    Ambiguous(
                        mode=Mode.DELETE,
                        fact=fact,
                        graphs=tuple(partitions),
                        candidates=tuple(graph.value for graph in partitions),
                        reason="More than one organisation graph found. Not removing triple.",
                    )
                )
                continue
            if not graphs:
                results.append(Removed(fact=fact, graphs=(), reason=NOTHING_TO_REMOVE))
                continue
            for graph in graphs:
                deletable.setdefault(graph, []).append(fact.in_graph(graph))
            results.append(Removed(fact=fact, graphs=tuple(graphs)))

        done: set[IRI] = set()
        try:
            for graph in sorted(deletable, key=self._deletion_rank):
                await self._mutator.apply(Mode.DELETE, graph, deletable[graph])
                done.add(graph)
        except FatalMutationError as exc:
            exc.completed = [
                result
                for result in results
                if not isinstance(result, Removed) or done.issuperset(result.graphs)
            ]
            raise
        return results

    def _deletion_rank(self, graph: IRI) -> tuple[int, str]:
        """Partitions first, the deletes staging graph last.

        A fatal error half-way then leaves the triple in the deletes staging
        graph, where the next scan finds it again.
        """

        if graph == self._graphs.deletes:
            return (3, graph.value)
        if graph == self._graphs.inserts:
            return (2, graph.value)
        if self._graphs.is_partition(graph):
            return (0, graph.value)
        return (1, graph.value)
