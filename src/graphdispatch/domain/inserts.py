"""Insert dispatching: move staged subjects into their partition graphs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import FatalMutationError
from .model import SubjectType
from .results import Ambiguous, Mode, Pending, Placed

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from graphdispatch.config.dispatch import GraphConfig

    from .model import IRI, Subject
    from .mutation import BatchMutator
    from .ownership import OwnershipResolver
    from .ports.store import TripleStore
    from .results import DispatchResult

log = getLogger(__name__)


class InsertDispatcher:
    """Decide, per subject, whether and where staged inserts can be moved.

    ==========================  ================================================
    candidates                  outcome
    ==========================  ================================================
    0                           ``Pending``: left in staging, retried later
    1                           ``Placed``: moved into that partition
    >1, multiple allowed        ``Placed``: copied into every partition
    >1, multiple not allowed    ``Ambiguous``: left in staging, retried later
    ==========================  ================================================
    """

    def __init__(
        self,
        *,
        store: TripleStore,
        resolver: OwnershipResolver,
        mutator: BatchMutator,
        graphs: GraphConfig,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._mutator = mutator
        self._graphs = graphs

    async def dispatch_subjects(self, subjects: Sequence[Subject]) -> list[DispatchResult]:
        """Look up the types of ``subjects`` and dispatch each of them."""

        if not subjects:
            return []
        typed = await self._store.types_for_subjects(subjects)
        return await self.dispatch(_with_untyped(subjects, typed))

    async def dispatch(self, subjects_with_types: Iterable[SubjectType]) -> list[DispatchResult]:
        results: list[DispatchResult] = []
        for entry in subjects_with_types:
            try:
                results.append(await self._dispatch_one(entry))
            except FatalMutationError as exc:
                exc.completed = results
                raise
        return results

    async def _dispatch_one(self, entry: SubjectType) -> DispatchResult:
        subject, type_ = entry.subject, entry.type
        if type_ is None:
            return Pending(
                subject=subject,
                type=None,
                reason=(
                    f"No type found for subject {subject}. This could be normal. "
                    "This subject is tried again later."
                ),
            )

        log.info("Trying to dispatch info about %s for type: %s", subject, type_)
        tokens = sorted(await self._resolver.resolve(subject, type_))

        if not tokens:
            return Pending(
                subject=subject,
                type=type_,
                reason=(
                    "No organisation found. This could be normal. This subject is tried "
                    f"again later. It was about subject: {subject} for type: {type_}"
                ),
            )

        if len(tokens) > 1 and not self._resolver.allows_multiple(type_):
            return Ambiguous(
                mode=Mode.INSERT,
                subject=subject,
                type=type_,
                candidates=tuple(tokens),
                reason=(
                    "Too many possible organisations (and data not allowed in "
                    "multiple organisations)"
                ),
            )

        targets = tuple(self._graphs.partition_graph(token) for token in tokens)
        if not await self.move(subject, self._graphs.inserts, targets):
            return Pending(
                subject=subject,
                type=type_,
                reason=f"Nothing left in staging for subject: {subject}. Already dispatched.",
            )
        return Placed(subject=subject, type=type_, partitions=tuple(tokens), graphs=targets)

    async def move(self, subject: Subject, from_graph: IRI, to_graphs: Sequence[IRI]) -> bool:
        """Copy every fact of ``subject`` in ``from_graph`` to ``to_graphs``, then remove it.

        Returns ``False`` when ``from_graph`` holds nothing about ``subject``.
        """

        facts = await self._store.facts_for_subject(subject, from_graph)
        if not facts:
            log.debug("Nothing left in %s for %s", from_graph, subject)
            return False
        for graph in to_graphs:
            await self._mutator.apply(Mode.INSERT, graph, facts)
        await self._mutator.apply(Mode.DELETE, from_graph, facts)
        return True


def _with_untyped(
    subjects: Sequence[Subject],
    typed: Sequence[SubjectType],
) -> list[SubjectType]:
    """Keep ``typed`` order and append a typeless entry for every unknown subject."""

    known = {entry.subject for entry in typed}
    untyped = [SubjectType(subject, None) for subject in subjects if subject not in known]
    return [*typed, *untyped]
