"""Errors raised by the dispatch core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import IRI, Fact
    from .results import DispatchResult, ProcessingReport


class StoreError(RuntimeError):
    """A query or update against the triple store failed.

    Always retryable: re-running the triggering operation or a later
    reconciliation scan picks the work up again.
    """


class FatalMutationError(StoreError):
    """A delete failed even for a single fact.

    Progress committed before the failure stays committed. ``completed`` holds
    the results of the step that failed, up to the failure, and ``report`` is
    attached by the pipeline so callers still get everything gathered so far.
    """

    def __init__(self, message: str, *, fact: Fact, graph: IRI) -> None:
        super().__init__(message)
        self.fact = fact
        self.graph = graph
        self.completed: list[DispatchResult] = []
        self.report: ProcessingReport | None = None

    @classmethod
    def for_fact(cls, fact: Fact, graph: IRI, cause: BaseException) -> FatalMutationError:
        msg = (
            f"The following triple could not be removed from {graph}:\n\t{fact}\n"
            "This might be because of a network issue, a syntax issue or because "
            f"the triple is too long. Cause: {cause}"
        )
        return cls(msg, fact=fact, graph=graph)
