"""FastAPI application factory for the dispatcher."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from fastapi import FastAPI

from graphdispatch import __version__
from graphdispatch.app import build_service

from .routes import router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from graphdispatch.app import DispatcherService

log = getLogger(__name__)


def create_app(
    service: DispatcherService | None = None,
    *,
    run_startup_scan: bool = True,
) -> FastAPI:
    """Create the application around ``service`` (built from the environment if omitted).

    On startup the store is polled until it answers, then the staging graphs are
    scanned once. Requests are accepted meanwhile; they queue behind the scan.
    """

    effective_service = service or build_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        startup: asyncio.Task[None] | None = None
        if run_startup_scan:
            startup = asyncio.create_task(effective_service.startup())
        app.state.startup_task = startup
        log.info("Graph dispatcher started")

        yield

        log.info("Shutting down graph dispatcher...")
        if startup is not None and not startup.done():
            startup.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await startup
        await effective_service.aclose()
        log.info("Graph dispatcher stopped")

    app = FastAPI(
        title="Graph dispatcher",
        description="Moves staged RDF inserts and deletes into organisation graphs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = effective_service
    app.include_router(router)
    return app
