"""Serialise terms and facts into SPARQL syntax."""

from __future__ import annotations

from typing import TYPE_CHECKING

from graphdispatch.domain.errors import StoreError
from graphdispatch.domain.model import IRI, XSD_STRING, BlankNode, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable

    from graphdispatch.domain.model import Fact, Term

_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
        "\b": "\\b",
        "\f": "\\f",
    }
)

_IRI_FORBIDDEN = frozenset('<>"{}|^`\\ \n\r\t')


class UnencodableTermError(StoreError):
    """A term holds characters SPARQL cannot carry in a request."""


def can_encode_iri(value: str) -> bool:
    return _IRI_FORBIDDEN.isdisjoint(value)


def encode_iri(value: str) -> str:
    if not can_encode_iri(value):
        raise UnencodableTermError(f"Cannot serialise IRI {value!r}")
    return f"<{value}>"


def encode_literal(literal: Literal, *, explicit_string_type: bool = False) -> str:
    """Quote ``literal``; ``explicit_string_type`` keeps the ``^^xsd:string`` suffix.

    Virtuoso only deletes string literals that were stored with an explicit
    datatype when the DELETE spells that datatype out as well.
    """

    quoted = f'"{literal.value.translate(_ESCAPES)}"'
    if literal.language:
        return f"{quoted}@{literal.language}"
    if literal.datatype == XSD_STRING and not explicit_string_type:
        return quoted
    return f"{quoted}^^{encode_iri(literal.datatype)}"


def encode_term(term: Term, *, explicit_string_type: bool = False) -> str:
    match term:
        case IRI(value=value):
            return encode_iri(value)
        case BlankNode(value=value):
            return f"_:{value}"
        case Literal():
            return encode_literal(term, explicit_string_type=explicit_string_type)


def encode_triple(fact: Fact, *, explicit_string_type: bool = False) -> str:
    obj = encode_term(fact.object, explicit_string_type=explicit_string_type)
    return f"{encode_term(fact.subject)} {encode_iri(fact.predicate.value)} {obj} ."


def encode_triples(facts: Iterable[Fact], *, explicit_string_type: bool = False) -> str:
    return "\n".join(
        encode_triple(fact, explicit_string_type=explicit_string_type) for fact in facts
    )


def encode_values_row(fact: Fact, *, explicit_string_type: bool = False) -> str:
    obj = encode_term(fact.object, explicit_string_type=explicit_string_type)
    return f"({encode_term(fact.subject)} {encode_iri(fact.predicate.value)} {obj})"


def has_string_datatype(fact: Fact) -> bool:
    return isinstance(fact.object, Literal) and (
        fact.object.datatype == XSD_STRING and not fact.object.language
    )


def can_encode(fact: Fact) -> bool:
    try:
        encode_triple(fact, explicit_string_type=True)
    except UnencodableTermError:
        return False
    return True
