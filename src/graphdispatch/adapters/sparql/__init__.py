"""Public interface for the SPARQL adapter."""

from __future__ import annotations

from .client import SparqlClient
from .errors import SparqlErrorSink
from .health import wait_for_store
from .namespaces import PREFIXES, SPARQL_PREFIXES
from .schema import (
    DeltaChangeset,
    DeltaTriple,
    SparqlResults,
    SparqlTerm,
    parse_delta_payload,
    parse_sparql_results,
)
from .store import DEFAULT_OWNER_PATTERN, SparqlTripleStore

__all__ = [
    "DEFAULT_OWNER_PATTERN",
    "PREFIXES",
    "SPARQL_PREFIXES",
    "DeltaChangeset",
    "DeltaTriple",
    "SparqlClient",
    "SparqlErrorSink",
    "SparqlResults",
    "SparqlTerm",
    "SparqlTripleStore",
    "parse_delta_payload",
    "parse_sparql_results",
    "wait_for_store",
]
