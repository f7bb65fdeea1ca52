from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

import uvicorn
from dotenv import load_dotenv

from graphdispatch.api.server import create_app
from graphdispatch.app import build_service
from graphdispatch.config import ConfigurationError, configure_logging, get_dispatch_config
from graphdispatch.domain.results import Outcome

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from graphdispatch.config import DispatchConfig
    from graphdispatch.domain.results import ProcessingReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dispatch staged RDF changes to organisation graphs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the delta-notifier HTTP service")
    serve_parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",  # noqa: S104
        help="Interface to bind (default: %(default)s)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=80,
        help="Port to listen on (default: %(default)s)",
    )
    serve_parser.add_argument(
        "--no-startup-scan",
        action="store_true",
        help="Skip the scan of the staging graphs after startup",
    )

    scan_parser = subparsers.add_parser("scan", help="Run one reconciliation scan and exit")
    scan_parser.add_argument(
        "--inserts-only",
        action="store_true",
        help="Only dispatch staged inserts; leave the deletes staging graph alone",
    )

    return parser.parse_args(list(argv))


def serve(config: DispatchConfig, *, host: str, port: int, startup_scan: bool) -> None:
    app = create_app(build_service(config), run_startup_scan=startup_scan)
    uvicorn.run(app, host=host, port=port, log_config=None)


def run_scan(config: DispatchConfig, *, include_deletes: bool) -> ProcessingReport:
    async def scan() -> ProcessingReport:
        service = build_service(config)
        try:
            return await service.scan(include_deletes=include_deletes)
        finally:
            await service.aclose()

    return asyncio.run(scan())


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    try:
        config = get_dispatch_config()
    except ConfigurationError:
        configure_logging()
        log.exception("Invalid configuration")
        sys.exit(2)
    configure_logging(level=config.logging_level)

    try:
        if parsed_args.command == "serve":
            serve(
                config,
                host=parsed_args.host,
                port=parsed_args.port,
                startup_scan=not parsed_args.no_startup_scan,
            )
        else:
            report = run_scan(config, include_deletes=not parsed_args.inserts_only)
            if report.by_outcome(Outcome.FAILED):
                sys.exit(1)
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
