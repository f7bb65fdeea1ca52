"""Block until the triple store answers queries."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from graphdispatch.domain.errors import StoreError

if TYPE_CHECKING:
    from graphdispatch.domain.mutation import Sleep

    from .store import SparqlTripleStore

log = getLogger(__name__)


async def wait_for_store(
    store: SparqlTripleStore,
    *,
    interval_seconds: float,
    sleep: Sleep = asyncio.sleep,
    max_attempts: int | None = None,
) -> int:
    """Ping ``store`` until it answers and return the number of attempts.

    Between attempts the wait is five times ``interval_seconds``. Raises the
    last ``StoreError`` once ``max_attempts`` is exhausted.
    """

    attempt = 0
    while True:
        attempt += 1
        try:
            await store.ping()
        except StoreError:
            if max_attempts is not None and attempt >= max_attempts:
                raise
            log.info("Waiting for database... (attempt %d)", attempt)
            await sleep(interval_seconds * 5)
        else:
            log.debug("Database answered after %d attempt(s)", attempt)
            return attempt
