"""Ownership resolution: which partition(s) a subject belongs to."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .model import IRI, Subject
    from .ports.store import OwnershipLookup

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OwnershipPath:
    """Static path from a subject of ``type`` to the entity owning it.

    ``path`` is an opaque pattern understood by the ``OwnershipLookup`` that
    executes it. Several paths may exist for one type; their results are
    unioned.
    """

    type: str
    path: str
    allowed_in_multiple_orgs: bool = False
    name: str | None = None


@runtime_checkable
class OwnershipResolver(Protocol):
    async def resolve(self, subject: Subject, type_: IRI) -> frozenset[str]:
        """Partition tokens owning ``subject``; empty means not resolvable yet."""
        ...

    def allows_multiple(self, type_: IRI) -> bool: ...


class PathTableResolver:
    """Resolve ownership by running every configured path for a type."""

    def __init__(self, paths: Iterable[OwnershipPath], lookup: OwnershipLookup) -> None:
        self._lookup = lookup
        self._paths_by_type: dict[str, list[OwnershipPath]] = {}
        for path in paths:
            self._paths_by_type.setdefault(path.type, []).append(path)

    def paths_for(self, type_: IRI) -> tuple[OwnershipPath, ...]:
        return tuple(self._paths_by_type.get(type_.value, ()))

    def allows_multiple(self, type_: IRI) -> bool:
        """True when every path configured for ``type_`` allows duplication."""

        paths = self.paths_for(type_)
        return bool(paths) and all(path.allowed_in_multiple_orgs for path in paths)

    async def resolve(self, subject: Subject, type_: IRI) -> frozenset[str]:
        tokens: set[str] = set()
        for path in self.paths_for(type_):
            found = await self._lookup.owner_tokens(subject, path)
            tokens.update(found)
        log.debug("Ownership of %s (%s): %s", subject, type_, sorted(tokens) or "none")
        return frozenset(tokens)
