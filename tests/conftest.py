from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from graphdispatch.config import DispatchConfig, GraphConfig
from graphdispatch.domain.ownership import OwnershipPath

from tests.support.memory_store import ASSOCIATION, PERSON, SITE, InMemoryStore

if TYPE_CHECKING:
    from collections.abc import Iterator

_CONFIG_ENV_VARS = (
    "TEMP_GRAPH_PREFIX",
    "ORGANISATION_GRAPH_PREFIX",
    "BATCH_SIZE",
    "SLEEP_BETWEEN_BATCHES",
    "STARTUP_SCAN_DELAY",
    "FOLLOW_UP_SCAN_DELAY",
    "LOGLEVEL",
    "WRITE_ERRORS",
    "ERROR_GRAPH",
    "ERROR_BASE",
    "PING_DB_INTERVAL",
    "OWNERSHIP_PATHS_FILE",
    "MU_SPARQL_ENDPOINT",
    "MU_SPARQL_UPDATE_ENDPOINT",
    "MU_CALL_SCOPE_ID",
    "SPARQL_MAX_CALLS_PER_SECOND",
    "SPARQL_TIMEOUT_SECONDS",
    "SPARQL_RETRIES",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def graphs() -> GraphConfig:
    return GraphConfig(
        temp_graph_prefix="http://example.org/graphs/ingest",
        organisation_graph_prefix="http://example.org/graphs/organizations/",
    )


@pytest.fixture
def dispatch_config(graphs: GraphConfig) -> DispatchConfig:
    return DispatchConfig(
        graphs=graphs,
        batch_size=3,
        startup_scan_delay_seconds=0.0,
        follow_up_scan_delay_seconds=None,
    )


@pytest.fixture
def ownership_paths() -> tuple[OwnershipPath, ...]:
    return (
        OwnershipPath(type=ASSOCIATION.value, path="self", name="association"),
        OwnershipPath(
            type=PERSON.value,
            path="representative",
            allowed_in_multiple_orgs=True,
            name="representative",
        ),
        OwnershipPath(
            type=PERSON.value, path="member", allowed_in_multiple_orgs=True, name="member"
        ),
        OwnershipPath(
            type=SITE.value, path="primary site", allowed_in_multiple_orgs=True, name="site"
        ),
        OwnershipPath(type=SITE.value, path="site address", name="site address"),
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
