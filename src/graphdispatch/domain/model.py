"""RDF terms, facts and changesets (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

XSD_STRING: Final[str] = "http://www.w3.org/2001/XMLSchema#string"
RDF_LANG_STRING: Final[str] = "http://www.w3.org/1999/02/22-rdf-syntax-ns#langString"
RDF_TYPE: Final[str] = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"


class TermKind(StrEnum):
    IRI = "uri"
    LITERAL = "literal"
    BLANK_NODE = "bnode"


@dataclass(frozen=True, slots=True)
class IRI:
    value: str

    @property
    def kind(self) -> TermKind:
        return TermKind.IRI

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class BlankNode:
    value: str

    @property
    def kind(self) -> TermKind:
        return TermKind.BLANK_NODE

    def __str__(self) -> str:
        return f"_:{self.value}"


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal value with a datatype and an optional language tag.

    Simple literals are ``xsd:string`` and language-tagged literals are
    ``rdf:langString``, so ``Literal("a")`` and ``Literal("a", XSD_STRING)``
    compare equal. Use ``Literal.of`` when the datatype may be missing.
    """

    value: str
    datatype: str = XSD_STRING
    language: str | None = None

    @classmethod
    def of(
        cls,
        value: str,
        *,
        datatype: str | None = None,
        language: str | None = None,
    ) -> Literal:
        if language:
            return cls(value, RDF_LANG_STRING, language.lower())
        return cls(value, datatype or XSD_STRING)

    @property
    def kind(self) -> TermKind:
        return TermKind.LITERAL

    def __str__(self) -> str:
        if self.language:
            return f'"{self.value}"@{self.language}'
        return f'"{self.value}"^^<{self.datatype}>'


type Term = IRI | Literal | BlankNode
type Subject = IRI | BlankNode
type Triple = tuple[Subject, IRI, Term]


@dataclass(frozen=True, slots=True)
class Fact:
    """One triple together with the graph currently holding it.

    Reconciliation compares facts by ``triple`` only: the same triple can sit in
    a staging graph and a partition graph at the same time.
    """

    subject: Subject
    predicate: IRI
    object: Term
    graph: IRI | None = None

    @property
    def triple(self) -> Triple:
        return (self.subject, self.predicate, self.object)

    @property
    def has_literal_object(self) -> bool:
        return isinstance(self.object, Literal)

    def in_graph(self, graph: IRI | None) -> Fact:
        return replace(self, graph=graph)

    def __str__(self) -> str:
        return f"{self.subject} {self.predicate} {self.object}"


@dataclass(frozen=True, slots=True)
class Changeset:
    """One atomic unit from the upstream feed."""

    inserts: tuple[Fact, ...] = ()
    deletes: tuple[Fact, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.inserts and not self.deletes

    def as_deletes(self) -> Changeset:
        """Treat every insert as a delete.

        The deletes staging graph is itself filled by inserts upstream, so a
        delta about that graph reports staged deletions as inserts.
        """

        return Changeset(inserts=(), deletes=(*self.deletes, *self.inserts))


@dataclass(frozen=True, slots=True)
class SubjectType:
    """A staged subject paired with one of its known ``rdf:type`` values."""

    subject: Subject
    type: IRI | None


def distinct_subjects(facts: Iterable[Fact]) -> list[Subject]:
    """Subjects of ``facts`` in first-seen order."""

    seen: dict[Subject, None] = {}
    for fact in facts:
        seen.setdefault(fact.subject, None)
    return list(seen)
