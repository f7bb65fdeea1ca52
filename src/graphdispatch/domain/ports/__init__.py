"""Domain port definitions for adapters."""

from __future__ import annotations

from .store import ErrorSink, OwnershipLookup, TripleStore

__all__ = [
    "ErrorSink",
    "OwnershipLookup",
    "TripleStore",
]
