"""Pydantic models for SPARQL JSON results and delta-notifier payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from graphdispatch.domain import model

TermType = Literal["uri", "literal", "typed-literal", "bnode"]


class SparqlBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class SparqlTerm(SparqlBaseModel):
    """One RDF term in SPARQL 1.1 JSON form.

    ``typed-literal`` is Virtuoso's non-standard spelling of a literal with a
    datatype.
    """

    type: TermType
    value: str
    datatype: str | None = None
    language: str | None = Field(default=None, alias="xml:lang")

    def to_term(self) -> model.Term:
        match self.type:
            case "uri":
                return model.IRI(self.value)
            case "bnode":
                return model.BlankNode(self.value)
            case "literal" | "typed-literal":
                return model.Literal.of(
                    self.value, datatype=self.datatype, language=self.language
                )

    def to_iri(self) -> model.IRI:
        if self.type != "uri":
            raise ValueError(f"Expected an IRI, got a {self.type}: {self.value!r}")
        return model.IRI(self.value)

    def to_subject(self) -> model.Subject:
        if self.type not in {"uri", "bnode"}:
            raise ValueError(f"A literal cannot be a subject: {self.value!r}")
        term = self.to_term()
        assert not isinstance(term, model.Literal)
        return term


Binding = dict[str, SparqlTerm]


class SparqlHead(SparqlBaseModel):
    vars: list[str] = Field(default_factory=list)


class SparqlBindings(SparqlBaseModel):
    bindings: list[Binding] = Field(default_factory=list)


class SparqlResults(SparqlBaseModel):
    head: SparqlHead = Field(default_factory=SparqlHead)
    results: SparqlBindings = Field(default_factory=SparqlBindings)

    @property
    def bindings(self) -> list[Binding]:
        return self.results.bindings


class DeltaTriple(SparqlBaseModel):
    subject: SparqlTerm
    predicate: SparqlTerm
    object: SparqlTerm
    graph: SparqlTerm | None = None

    @model_validator(mode="after")
    def _check_positions(self) -> DeltaTriple:
        self.subject.to_subject()
        self.predicate.to_iri()
        if self.graph is not None:
            self.graph.to_iri()
        return self

    def to_fact(self) -> model.Fact:
        return model.Fact(
            subject=self.subject.to_subject(),
            predicate=self.predicate.to_iri(),
            object=self.object.to_term(),
            graph=self.graph.to_iri() if self.graph is not None else None,
        )


class DeltaChangeset(SparqlBaseModel):
    inserts: list[DeltaTriple] = Field(default_factory=list)
    deletes: list[DeltaTriple] = Field(default_factory=list)

    def to_changeset(self) -> model.Changeset:
        return model.Changeset(
            inserts=tuple(triple.to_fact() for triple in self.inserts),
            deletes=tuple(triple.to_fact() for triple in self.deletes),
        )


_DELTA_PAYLOAD = TypeAdapter(list[DeltaChangeset])


def parse_sparql_results(payload: object) -> SparqlResults:
    return SparqlResults.model_validate(payload)


def parse_delta_payload(payload: object) -> list[model.Changeset]:
    """Validate a delta-notifier body (a JSON list of changesets)."""

    return [changeset.to_changeset() for changeset in _DELTA_PAYLOAD.validate_python(payload)]
