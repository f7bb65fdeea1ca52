"""Triple store and ownership lookup backed by a SPARQL endpoint."""

from __future__ import annotations

from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from graphdispatch.domain.errors import StoreError
from graphdispatch.domain.model import IRI, Fact, SubjectType

from .encoding import (
    can_encode,
    can_encode_iri,
    encode_iri,
    encode_term,
    encode_triples,
    encode_values_row,
    has_string_datatype,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from graphdispatch.domain.model import Subject
    from graphdispatch.domain.ownership import OwnershipPath

    from .client import SparqlClient
    from .schema import Binding

log = getLogger(__name__)

# From the association to the UUID of the municipality it is located in.
DEFAULT_OWNER_PATTERN: Final[str] = """
    ?association org:hasPrimarySite/organisatie:bestaatUit/adres:gemeentenaam ?gemeentenaam .
    ?bestuurseenheid org:classification/skos:prefLabel "Gemeente" ;
      besluit:werkingsgebied ?werkingsgebied ;
      mu:uuid ?token .
    ?werkingsgebied a prov:Location ;
      rdfs:label ?gemeentenaam .
"""

PING_QUERY: Final[str] = "SELECT ?s WHERE { GRAPH ?g { ?s ?p ?o } } LIMIT 1"

type _Converter[T] = Callable[[Binding], T]


class SparqlTripleStore:
    """``TripleStore`` and ``OwnershipLookup`` over one ``SparqlClient``."""

    def __init__(
        self,
        client: SparqlClient,
        *,
        owner_pattern: str = DEFAULT_OWNER_PATTERN,
        lookup_chunk_size: int = 100,
    ) -> None:
        self._client = client
        self._owner_pattern = owner_pattern
        self._lookup_chunk_size = lookup_chunk_size

    async def ping(self) -> None:
        await self._client.query(PING_QUERY)

    async def types_for_subjects(self, subjects: Sequence[Subject]) -> list[SubjectType]:
        # Blank node labels are local to a result set and cannot be looked up.
        iris = [subject for subject in subjects if isinstance(subject, IRI)]
        unencodable = [subject for subject in iris if not can_encode_iri(subject.value)]
        if unencodable:
            log.warning("Skipping subjects that cannot be written in SPARQL: %s", unencodable)
            iris = [subject for subject in iris if subject not in unencodable]
        found: list[SubjectType] = []
        for chunk in batched(iris, self._lookup_chunk_size):
            values = " ".join(encode_iri(subject.value) for subject in chunk)
            bindings = await self._select(
                f"""
                SELECT DISTINCT ?subject ?type WHERE {{
                  VALUES ?subject {{ {values} }}
                  ?subject rdf:type ?type .
                }}
                """
            )
            found.extend(
                self._convert(
                    bindings,
                    lambda b: SubjectType(b["subject"].to_subject(), b["type"].to_iri()),
                )
            )
        return found

    async def staged_subjects(self, graph: IRI) -> list[Subject]:
        bindings = await self._select(
            f"""
            SELECT DISTINCT ?subject WHERE {{
              GRAPH {encode_iri(graph.value)} {{ ?subject ?p ?o . }}
            }}
            """
        )
        return self._convert(bindings, lambda b: b["subject"].to_subject())

    async def facts_for_subject(self, subject: Subject, graph: IRI) -> list[Fact]:
        bindings = await self._select(
            f"""
            SELECT ?p ?o WHERE {{
              GRAPH {encode_iri(graph.value)} {{ {encode_term(subject)} ?p ?o . }}
            }}
            """
        )
        return self._convert(
            bindings, lambda b: Fact(subject, b["p"].to_iri(), b["o"].to_term(), graph)
        )

    async def graphs_for_facts(self, facts: Sequence[Fact]) -> list[Fact]:
        occurrences: dict[Fact, None] = {}
        for chunk in batched(facts, self._lookup_chunk_size):
            rows: list[str] = []
            for fact in chunk:
                rows.append(encode_values_row(fact))
                if has_string_datatype(fact):
                    rows.append(encode_values_row(fact, explicit_string_type=True))
            newline = "\n                  "
            bindings = await self._select(
                f"""
                SELECT DISTINCT ?s ?p ?o ?g WHERE {{
                  VALUES (?s ?p ?o) {{
                  {newline.join(rows)}
                  }}
                  GRAPH ?g {{ ?s ?p ?o . }}
                }}
                """
            )
            for occurrence in self._convert(bindings, _quad):
                occurrences.setdefault(occurrence, None)
        return list(occurrences)

    async def facts_with_all_graphs(self, graph: IRI) -> list[Fact]:
        bindings = await self._select(
            f"""
            SELECT ?s ?p ?o ?g WHERE {{
              GRAPH {encode_iri(graph.value)} {{ ?s ?p ?o . }}
              GRAPH ?g {{ ?s ?p ?o . }}
            }}
            """
        )
        occurrences = list(dict.fromkeys(self._convert(bindings, _quad)))
        unencodable = [fact for fact in occurrences if not can_encode(fact)]
        if unencodable:
            log.warning("Skipping triples that cannot be written in SPARQL: %s", unencodable)
        return [fact for fact in occurrences if fact not in unencodable]

    async def insert_facts(self, graph: IRI, facts: Sequence[Fact]) -> None:
        if not facts:
            return
        await self._client.update(
            f"""
            INSERT DATA {{
              GRAPH {encode_iri(graph.value)} {{
                {encode_triples(facts)}
              }}
            }}
            """
        )

    async def delete_facts(self, graph: IRI, facts: Sequence[Fact]) -> None:
        """Delete ``facts`` from ``graph`` in one update request.

        String literals are deleted in both spellings: stores keep
        ``"a"`` and ``"a"^^xsd:string`` apart even though they are the same term.
        """

        if not facts:
            return
        target = encode_iri(graph.value)
        operations = [f"DELETE DATA {{ GRAPH {target} {{\n{encode_triples(facts)}\n}} }}"]
        typed = [fact for fact in facts if has_string_datatype(fact)]
        if typed:
            explicit = encode_triples(typed, explicit_string_type=True)
            operations.append(f"DELETE DATA {{ GRAPH {target} {{\n{explicit}\n}} }}")
        await self._client.update(" ;\n".join(operations))

    async def owner_tokens(self, subject: Subject, path: OwnershipPath) -> list[str]:
        if not isinstance(subject, IRI):
            return []
        bindings = await self._select(
            f"""
            SELECT DISTINCT ?token WHERE {{
              BIND({encode_iri(subject.value)} AS ?subject)
              {path.path}
              {self._owner_pattern}
            }}
            """
        )
        return self._convert(bindings, lambda b: b["token"].value)

    async def _select(self, text: str) -> list[Binding]:
        results = await self._client.query(text)
        return results.bindings

    @staticmethod
    def _convert[T](bindings: list[Binding], convert: _Converter[T]) -> list[T]:
        try:
            return [convert(binding) for binding in bindings]
        except (KeyError, ValueError, ValidationError) as exc:
            raise StoreError(f"Unexpected SPARQL binding: {exc}") from exc


def _quad(binding: Binding) -> Fact:
    return Fact(
        binding["s"].to_subject(),
        binding["p"].to_iri(),
        binding["o"].to_term(),
        binding["g"].to_iri(),
    )
