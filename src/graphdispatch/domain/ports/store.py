"""Ports for reading and mutating the backing triple store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphdispatch.domain.model import IRI, Fact, Subject, SubjectType
    from graphdispatch.domain.ownership import OwnershipPath


@runtime_checkable
class TripleStore(Protocol):
    """Query and update contract the dispatch core needs.

    Every method may raise ``StoreError``. Mutations are scoped to one explicit
    graph and are not batched: batching is the mutator's job.
    """

    async def types_for_subjects(self, subjects: Sequence[Subject]) -> list[SubjectType]:
        """Known ``rdf:type`` of each subject, looked up in any graph."""
        ...

    async def staged_subjects(self, graph: IRI) -> list[Subject]:
        """Distinct subjects with at least one triple in ``graph``."""
        ...

    async def facts_for_subject(self, subject: Subject, graph: IRI) -> list[Fact]:
        """All triples of ``subject`` in ``graph``."""
        ...

    async def graphs_for_facts(self, facts: Sequence[Fact]) -> list[Fact]:
        """Every occurrence of each triple in ``facts``, one fact per graph."""
        ...

    async def facts_with_all_graphs(self, graph: IRI) -> list[Fact]:
        """Triples in ``graph`` plus their occurrences in every other graph."""
        ...

    async def insert_facts(self, graph: IRI, facts: Sequence[Fact]) -> None: ...

    async def delete_facts(self, graph: IRI, facts: Sequence[Fact]) -> None: ...


@runtime_checkable
class OwnershipLookup(Protocol):
    """Follow one ownership path from a subject to partition tokens."""

    async def owner_tokens(self, subject: Subject, path: OwnershipPath) -> list[str]: ...


@runtime_checkable
class ErrorSink(Protocol):
    """Somewhere to persist error records for operators."""

    async def record_error(self, message: str) -> None: ...
