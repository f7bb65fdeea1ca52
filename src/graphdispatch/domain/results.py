"""Dispatch results produced by the insert dispatcher and delete reconciler.

Results are tagged variants rather than exceptions: ``Pending`` and
``Ambiguous`` are normal outcomes that a later reconciliation scan retries.
They are produced for observability only and never persisted as state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .model import IRI, Fact, Subject


class Mode(StrEnum):
    INSERT = "Insert"
    DELETE = "Delete"


class Outcome(StrEnum):
    PLACED = "placed"
    REMOVED = "removed"
    PENDING = "pending"
    AMBIGUOUS = "ambiguous"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class Placed:
    """Subject moved from the inserts staging graph into its partition(s)."""

    subject: Subject
    type: IRI
    partitions: tuple[str, ...]
    graphs: tuple[IRI, ...]
    reason: str = "Data successfully moved for this subject."
    mode: Mode = Mode.INSERT
    outcome: Literal[Outcome.PLACED] = Outcome.PLACED

    @property
    def success(self) -> bool:
        return True

    @property
    def multi(self) -> bool:
        return len(self.partitions) > 1


@dataclass(frozen=True, slots=True, kw_only=True)
class Removed:
    """Staged deletion removed from every graph it was found in."""

    fact: Fact
    graphs: tuple[IRI, ...]
    reason: str = "Triple removed from all graphs it was found in."
    mode: Mode = Mode.DELETE
    outcome: Literal[Outcome.REMOVED] = Outcome.REMOVED

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class Pending:
    """Nothing could be done yet; the data stays in staging."""

    subject: Subject
    type: IRI | None
    reason: str
    mode: Mode = Mode.INSERT
    outcome: Literal[Outcome.PENDING] = Outcome.PENDING

    @property
    def success(self) -> bool:
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class Ambiguous:
    """More than one partition qualifies where only one is allowed."""

    mode: Mode
    reason: str
    candidates: tuple[str, ...] = ()
    subject: Subject | None = None
    type: IRI | None = None
    fact: Fact | None = None
    graphs: tuple[IRI, ...] = ()
    outcome: Literal[Outcome.AMBIGUOUS] = Outcome.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.candidates) < 2:
            raise ValueError("Ambiguous result must include at least two candidates")

    @property
    def success(self) -> bool:
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class Failed:
    """A run was aborted by a store error."""

    mode: Mode
    reason: str
    fact: Fact | None = None
    graph: IRI | None = None
    outcome: Literal[Outcome.FAILED] = Outcome.FAILED

    @property
    def success(self) -> bool:
        return False


type DispatchResult = Placed | Removed | Pending | Ambiguous | Failed


@dataclass(slots=True)
class ProcessingReport:
    """Results of one pipeline run, split by mode."""

    inserts: list[DispatchResult] = field(default_factory=list["DispatchResult"])
    deletes: list[DispatchResult] = field(default_factory=list["DispatchResult"])

    def extend(self, other: ProcessingReport) -> None:
        self.inserts.extend(other.inserts)
        self.deletes.extend(other.deletes)

    def add(self, result: DispatchResult) -> None:
        if result.mode is Mode.DELETE:
            self.deletes.append(result)
        else:
            self.inserts.append(result)

    @property
    def results(self) -> list[DispatchResult]:
        return [*self.deletes, *self.inserts]

    @property
    def placed_any(self) -> bool:
        return any(result.outcome is Outcome.PLACED for result in self.inserts)

    def by_outcome(self, outcome: Outcome) -> list[DispatchResult]:
        return [result for result in self.results if result.outcome is outcome]
