"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from graphdispatch.adapters.sparql import (
    SparqlClient,
    SparqlErrorSink,
    SparqlTripleStore,
    wait_for_store,
)
from graphdispatch.adapters.sparql.client import ClientFactory, default_client_factory
from graphdispatch.config import get_dispatch_config, get_sparql_config, load_ownership_paths
from graphdispatch.domain.deletes import DeleteReconciler
from graphdispatch.domain.errors import FatalMutationError, StoreError
from graphdispatch.domain.inserts import InsertDispatcher
from graphdispatch.domain.mutation import BatchMutator
from graphdispatch.domain.ownership import PathTableResolver
from graphdispatch.domain.pipeline import DeltaProcessor
from graphdispatch.domain.results import (
    Ambiguous,
    Failed,
    Mode,
    Pending,
    Placed,
    ProcessingReport,
    Removed,
)
from graphdispatch.domain.scheduling import ReconciliationScheduler, Serializer

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from graphdispatch.config import DispatchConfig, SparqlConfig
    from graphdispatch.domain.model import Changeset
    from graphdispatch.domain.mutation import Sleep
    from graphdispatch.domain.ownership import OwnershipPath
    from graphdispatch.domain.ports import ErrorSink, OwnershipLookup, TripleStore
    from graphdispatch.domain.results import DispatchResult

log = getLogger(__name__)

type Hook = Callable[[], Awaitable[object]]


class DispatcherService:
    """Every entry point that touches the store, serialised behind one gate.

    Store errors never escape an entry point: they are logged, optionally
    recorded in the error graph and reported as a ``Failed`` result.
    """

    def __init__(
        self,
        *,
        processor: DeltaProcessor,
        config: DispatchConfig,
        error_sink: ErrorSink | None = None,
        readiness: Hook | None = None,
        closers: Sequence[Hook] = (),
        serializer: Serializer | None = None,
    ) -> None:
        self.processor = processor
        self.config = config
        self.serializer = serializer or Serializer()
        self.scheduler = ReconciliationScheduler(
            serializer=self.serializer,
            run_scan=self._scheduled_scan,
            startup_delay_seconds=config.startup_scan_delay_seconds,
            follow_up_delay_seconds=config.follow_up_scan_delay_seconds,
        )
        self._error_sink = error_sink
        self._readiness = readiness
        self._closers = tuple(closers)

    async def ingest_inserts(self, changesets: Sequence[Changeset]) -> ProcessingReport:
        return await self._run(Mode.INSERT, partial(self.processor.process_changesets, changesets))

    async def ingest_deletes(self, changesets: Sequence[Changeset]) -> ProcessingReport:
        as_deletes = [changeset.as_deletes() for changeset in changesets]
        return await self._run(Mode.DELETE, partial(self.processor.process_changesets, as_deletes))

    async def manual_dispatch(self) -> ProcessingReport:
        return await self.scan(include_deletes=True)

    async def scan(self, *, include_deletes: bool = True) -> ProcessingReport:
        mode = Mode.DELETE if include_deletes else Mode.INSERT
        return await self._run(mode, partial(self.processor.scan, include_deletes=include_deletes))

    async def wait_until_ready(self) -> None:
        if self._readiness is not None:
            await self._readiness()

    async def startup(self) -> None:
        """Wait for the store, then run the delayed startup scan."""

        await self.wait_until_ready()
        await self.scheduler.run_startup()

    async def aclose(self) -> None:
        self.scheduler.cancel_follow_up()
        await self.serializer.drain()
        for close in self._closers:
            await close()

    async def _scheduled_scan(self, include_deletes: bool) -> ProcessingReport:
        return await self.scan(include_deletes=include_deletes)

    async def _run(
        self, mode: Mode, operation: Callable[[], Awaitable[ProcessingReport]]
    ) -> ProcessingReport:
        async with self.serializer.exclusive():
            try:
                report = await operation()
            except FatalMutationError as exc:
                log.exception("Dispatching stopped on a triple that could not be removed")
                report = exc.report or ProcessingReport()
                failed_mode = Mode.INSERT if exc.graph == self.config.graphs.inserts else mode
                report.add(
                    Failed(mode=failed_mode, reason=str(exc), fact=exc.fact, graph=exc.graph)
                )
                await self._record_error(exc)
            except StoreError as exc:
                log.exception("Dispatching stopped on a store error")
                report = ProcessingReport()
                report.add(Failed(mode=mode, reason=str(exc)))
                await self._record_error(exc)

        handle_processing_result(report)
        if report.placed_any:
            self.scheduler.schedule_follow_up()
        return report

    async def _record_error(self, exc: BaseException) -> None:
        if not self.config.write_errors or self._error_sink is None:
            return
        try:
            await self._error_sink.record_error(str(exc))
        except StoreError:
            log.exception("Could not write the error record")


def handle_processing_result(report: ProcessingReport) -> None:
    results = report.results
    if not results:
        log.info("No data had to be processed")
        return
    log.info("Results of the last dispatching:")
    for result in results:
        log.info(describe_result(result))
    log.info("End of results")


def describe_result(result: DispatchResult) -> str:
    match result:
        case Placed():
            target = f"subject={result.subject} type={result.type} graphs={_join(result.graphs)}"
        case Removed():
            target = f"triple={result.fact} graphs={_join(result.graphs)}"
        case Pending():
            target = f"subject={result.subject} type={result.type}"
        case Ambiguous():
            about = f"subject={result.subject}" if result.subject else f"triple={result.fact}"
            target = f"{about} candidates={','.join(result.candidates)}"
        case Failed():
            target = f"triple={result.fact} graph={result.graph}"
    return f"[{result.mode}/{result.outcome}] {target}: {result.reason}"


def _join(graphs: Sequence[object]) -> str:
    return ",".join(str(graph) for graph in graphs)


def build_processor(
    *,
    store: TripleStore,
    lookup: OwnershipLookup,
    config: DispatchConfig,
    paths: Sequence[OwnershipPath],
    sleep: Sleep = asyncio.sleep,
) -> DeltaProcessor:
    mutator = BatchMutator(
        store,
        batch_size=config.batch_size,
        delay_seconds=config.sleep_between_batches_seconds,
        sleep=sleep,
    )
    return DeltaProcessor(
        store=store,
        inserts=InsertDispatcher(
            store=store,
            resolver=PathTableResolver(paths, lookup),
            mutator=mutator,
            graphs=config.graphs,
        ),
        deletes=DeleteReconciler(store=store, mutator=mutator, graphs=config.graphs),
        graphs=config.graphs,
    )


def build_service(
    config: DispatchConfig | None = None,
    sparql: SparqlConfig | None = None,
    *,
    client_factory: ClientFactory = default_client_factory,
) -> DispatcherService:
    """Wire the dispatcher against the configured SPARQL endpoint."""

    effective_config = config or get_dispatch_config()
    effective_sparql = sparql or get_sparql_config()
    client = SparqlClient(effective_sparql, client_factory=client_factory)
    store = SparqlTripleStore(client)
    paths = load_ownership_paths(effective_config.ownership_paths_file)
    log.info(
        "Dispatcher configured: inserts=%s, deletes=%s, partitions=%s*, paths=%d, batch_size=%d",
        effective_config.graphs.inserts,
        effective_config.graphs.deletes,
        effective_config.graphs.organisation_graph_prefix,
        len(paths),
        effective_config.batch_size,
    )

    error_sink = (
        SparqlErrorSink(
            client,
            error_graph=effective_config.error_graph,
            error_base=effective_config.error_base,
        )
        if effective_config.write_errors
        else None
    )
    return DispatcherService(
        processor=build_processor(
            store=store, lookup=store, config=effective_config, paths=paths
        ),
        config=effective_config,
        error_sink=error_sink,
        readiness=partial(
            wait_for_store, store, interval_seconds=effective_config.ping_db_interval_seconds
        ),
        closers=(client.aclose,),
    )
