"""Dispatcher configuration values."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final

from graphdispatch.domain.model import IRI

from .env import env_bool, env_choice, env_float, env_int, env_optional, env_str

DEFAULT_TEMP_GRAPH_PREFIX: Final[str] = "http://mu.semte.ch/graphs/ingest"
DEFAULT_ORGANISATION_GRAPH_PREFIX: Final[str] = "http://mu.semte.ch/graphs/organizations/"
DEFAULT_ERROR_GRAPH: Final[str] = "http://lblod.data.gift/errors"
DEFAULT_ERROR_BASE: Final[str] = "http://data.lblod.info/errors/"
DEFAULT_BATCH_SIZE: Final[int] = 100
DEFAULT_STARTUP_SCAN_DELAY_MS: Final[int] = 500
DEFAULT_FOLLOW_UP_SCAN_DELAY_MS: Final[int] = 5000
DEFAULT_PING_DB_INTERVAL_SECONDS: Final[float] = 2.0

LOG_LEVELS: Final[dict[str, int]] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "error": logging.ERROR,
    "silent": logging.CRITICAL,
}


@dataclass(frozen=True, slots=True)
class GraphConfig:
    """Names of the staging graphs and the partition graph prefix."""

    temp_graph_prefix: str = DEFAULT_TEMP_GRAPH_PREFIX
    organisation_graph_prefix: str = DEFAULT_ORGANISATION_GRAPH_PREFIX

    @property
    def inserts(self) -> IRI:
        return IRI(f"{self.temp_graph_prefix}-inserts")

    @property
    def deletes(self) -> IRI:
        return IRI(f"{self.temp_graph_prefix}-deletes")

    @property
    def discards(self) -> IRI:
        return IRI(f"{self.temp_graph_prefix}-discards")

    @property
    def staging(self) -> frozenset[IRI]:
        return frozenset({self.inserts, self.deletes})

    def partition_graph(self, token: str) -> IRI:
        return IRI(f"{self.organisation_graph_prefix}{token}")

    def is_partition(self, graph: IRI) -> bool:
        return graph not in self.staging and graph.value.startswith(
            self.organisation_graph_prefix
        )


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    graphs: GraphConfig = field(default_factory=GraphConfig)
    batch_size: int = DEFAULT_BATCH_SIZE
    sleep_between_batches_seconds: float = 0.0
    startup_scan_delay_seconds: float = DEFAULT_STARTUP_SCAN_DELAY_MS / 1000
    follow_up_scan_delay_seconds: float | None = DEFAULT_FOLLOW_UP_SCAN_DELAY_MS / 1000
    ping_db_interval_seconds: float = DEFAULT_PING_DB_INTERVAL_SECONDS
    log_level: str = "silent"
    write_errors: bool = False
    error_graph: str = DEFAULT_ERROR_GRAPH
    error_base: str = DEFAULT_ERROR_BASE
    ownership_paths_file: str | None = None

    @property
    def logging_level(self) -> int:
        return LOG_LEVELS[self.log_level]


def get_dispatch_config() -> DispatchConfig:
    follow_up_ms = env_int("FOLLOW_UP_SCAN_DELAY", DEFAULT_FOLLOW_UP_SCAN_DELAY_MS)
    return DispatchConfig(
        graphs=GraphConfig(
            temp_graph_prefix=env_str("TEMP_GRAPH_PREFIX", DEFAULT_TEMP_GRAPH_PREFIX),
            organisation_graph_prefix=env_str(
                "ORGANISATION_GRAPH_PREFIX", DEFAULT_ORGANISATION_GRAPH_PREFIX
            ),
        ),
        batch_size=env_int("BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        sleep_between_batches_seconds=env_int("SLEEP_BETWEEN_BATCHES", 0, minimum=0) / 1000,
        startup_scan_delay_seconds=env_int(
            "STARTUP_SCAN_DELAY", DEFAULT_STARTUP_SCAN_DELAY_MS, minimum=0
        )
        / 1000,
        follow_up_scan_delay_seconds=follow_up_ms / 1000 if follow_up_ms > 0 else None,
        ping_db_interval_seconds=env_float("PING_DB_INTERVAL", DEFAULT_PING_DB_INTERVAL_SECONDS),
        log_level=env_choice("LOGLEVEL", "silent", choices=tuple(LOG_LEVELS)),
        write_errors=env_bool("WRITE_ERRORS", default=False),
        error_graph=env_str("ERROR_GRAPH", DEFAULT_ERROR_GRAPH),
        error_base=env_str("ERROR_BASE", DEFAULT_ERROR_BASE),
        ownership_paths_file=env_optional("OWNERSHIP_PATHS_FILE"),
    )
