"""Adaptive batched inserts and deletes against the triple store."""

from __future__ import annotations

import asyncio
import math
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import FatalMutationError, StoreError
from .results import Mode

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from .model import IRI, Fact
    from .ports.store import TripleStore

log = getLogger(__name__)

DEFAULT_BATCH_SIZE = 100

type Sleep = Callable[[float], Awaitable[None]]


class BatchMutator:
    """Apply fact sets to one graph in store-friendly portions.

    A quiescence delay is observed before every store operation. Deletes are
    split into two passes: resource-valued objects in adaptive batches, then
    literal-valued objects one per operation, because exact-match deletes of
    typed literals are unreliable in bulk.
    """

    def __init__(
        self,
        store: TripleStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_seconds: float = 0.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._store = store
        self._batch_size = batch_size
        self._delay_seconds = delay_seconds
        self._sleep = sleep

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def apply(self, mode: Mode, graph: IRI, facts: Sequence[Fact]) -> None:
        if not facts:
            return
        if mode is Mode.INSERT:
            await self.insert(graph, facts)
        else:
            await self.delete(graph, facts)

    async def insert(self, graph: IRI, facts: Sequence[Fact]) -> None:
        for start in range(0, len(facts), self._batch_size):
            await self._quiesce()
            await self._store.insert_facts(graph, facts[start : start + self._batch_size])

    async def delete(self, graph: IRI, facts: Sequence[Fact]) -> None:
        resources = [fact for fact in facts if not fact.has_literal_object]
        literals = [fact for fact in facts if fact.has_literal_object]
        await self._delete_adaptive(graph, resources)
        for fact in literals:
            await self._quiesce()
            try:
                await self._store.delete_facts(graph, [fact])
            except StoreError as exc:
                raise FatalMutationError.for_fact(fact, graph, exc) from exc

    async def _delete_adaptive(self, graph: IRI, facts: Sequence[Fact]) -> None:
        batch_size = self._batch_size
        start = 0
        while start < len(facts):
            batch = facts[start : start + batch_size]
            await self._quiesce()
            try:
                await self._store.delete_facts(graph, batch)
            except StoreError as exc:
                if len(batch) <= 1:
                    raise FatalMutationError.for_fact(facts[start], graph, exc) from exc
                batch_size = math.ceil(len(batch) / 2)
                log.debug(
                    "Delete of %s triples from %s failed, retrying with batch size %s",
                    len(batch),
                    graph,
                    batch_size,
                )
                continue
            start += len(batch)
            batch_size = self._batch_size

    async def _quiesce(self) -> None:
        if self._delay_seconds > 0:
            await self._sleep(self._delay_seconds)
