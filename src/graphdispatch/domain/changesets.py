"""Coalescing of upstream changesets into pure insert or delete batches.

Every changeset is first split into a delete run followed by an insert run,
which is the order upstream staged them in. The resulting tagged sequence is
then run-length merged: adjacent runs of the same kind become one batch.

Preserved: the order of kinds. A delete from one changeset is always handled
before an insert from a later changeset and vice versa.
Not preserved: the order of facts inside a merged batch. Placement decisions
do not depend on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .model import Changeset, Fact


class BatchKind(StrEnum):
    DELETE = "delete"
    INSERT = "insert"


@dataclass(frozen=True, slots=True)
class FactBatch:
    kind: BatchKind
    facts: tuple[Fact, ...]


def split_changeset(changeset: Changeset) -> Iterator[FactBatch]:
    """Yield the non-empty runs of one changeset, deletes first."""

    if changeset.deletes:
        yield FactBatch(BatchKind.DELETE, tuple(changeset.deletes))
    if changeset.inserts:
        yield FactBatch(BatchKind.INSERT, tuple(changeset.inserts))


def coalesce(changesets: Iterable[Changeset]) -> list[FactBatch]:
    """Merge ``changesets`` into alternating pure batches."""

    batches: list[FactBatch] = []
    for changeset in changesets:
        for run in split_changeset(changeset):
            if batches and batches[-1].kind is run.kind:
                previous = batches.pop()
                run = FactBatch(run.kind, previous.facts + run.facts)  # noqa: PLW2901
            batches.append(run)
    return batches
