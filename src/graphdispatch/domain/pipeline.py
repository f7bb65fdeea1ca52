"""Delta processing pipeline: inbound changesets and reconciliation scans."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .changesets import BatchKind, coalesce
from .errors import FatalMutationError
from .model import distinct_subjects
from .results import ProcessingReport

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Sequence

    from graphdispatch.config.dispatch import GraphConfig

    from .deletes import DeleteReconciler
    from .inserts import InsertDispatcher
    from .model import Changeset, Fact, Subject
    from .ports.store import TripleStore
    from .results import DispatchResult

log = getLogger(__name__)


class DeltaProcessor:
    """Route staged inserts and deletes through the dispatcher and reconciler.

    Not concurrency safe on its own: callers hold the ``Serializer`` gate.
    """

    def __init__(
        self,
        *,
        store: TripleStore,
        inserts: InsertDispatcher,
        deletes: DeleteReconciler,
        graphs: GraphConfig,
    ) -> None:
        self._store = store
        self._inserts = inserts
        self._deletes = deletes
        self._graphs = graphs

    async def process_changesets(self, changesets: Iterable[Changeset]) -> ProcessingReport:
        """Handle changesets in order, deletes before inserts within each one.

        A ``FatalMutationError`` aborts the run; the results gathered before the
        failure are attached to it as ``report``.
        """

        report = ProcessingReport()
        try:
            for batch in coalesce(changesets):
                if batch.kind is BatchKind.DELETE:
                    await _collect(report.deletes, self.process_deletes(batch.facts))
                else:
                    await _collect(
                        report.inserts,
                        self._inserts.dispatch_subjects(self._staged_subjects(batch.facts)),
                    )
        except FatalMutationError as exc:
            exc.report = report
            raise
        return report

    async def process_deletes(self, facts: Sequence[Fact]) -> list[DispatchResult]:
        staged = [fact for fact in facts if fact.graph == self._graphs.deletes]
        if not staged:
            log.debug("Nothing in the deletes to process.")
            return []
        return await self._deletes.reconcile(staged)

    async def scan(self, *, include_deletes: bool = True) -> ProcessingReport:
        """Re-evaluate everything still sitting in the staging graphs."""

        report = ProcessingReport()
        try:
            if include_deletes:
                occurrences = await self._store.facts_with_all_graphs(self._graphs.deletes)
                staged = [
                    fact for fact in occurrences if fact.graph == self._graphs.deletes
                ]
                await _collect(
                    report.deletes, self._deletes.reconcile_occurrences(staged, occurrences)
                )

            subjects = await self._store.staged_subjects(self._graphs.inserts)
            await _collect(report.inserts, self._inserts.dispatch_subjects(subjects))
        except FatalMutationError as exc:
            exc.report = report
            raise
        return report

    def _staged_subjects(self, facts: Sequence[Fact]) -> list[Subject]:
        staged = [fact for fact in facts if fact.graph == self._graphs.inserts]
        if not staged:
            log.debug("Nothing in the inserts to process.")
        return distinct_subjects(staged)


async def _collect(
    results: list[DispatchResult], step: Awaitable[list[DispatchResult]]
) -> None:
    """Extend ``results`` by ``step``, keeping what finished before a fatal error."""

    try:
        results.extend(await step)
    except FatalMutationError as exc:
        results.extend(exc.completed)
        raise
