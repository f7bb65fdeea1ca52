"""SPARQL endpoint configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_float, env_int, env_optional, env_str
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_SPARQL_ENDPOINT: Final[str] = "http://database:8890/sparql"
DEFAULT_CALL_SCOPE: Final[str] = "http://associations-graph-dispatcher/update"


@dataclass(frozen=True, slots=True)
class SparqlConfig:
    """Where and how to reach the triple store.

    Requests are sent with ``mu-auth-sudo`` so the dispatcher sees every graph,
    and updates carry ``mu-call-scope-id`` so downstream delta consumers can
    recognise (and ignore) the dispatcher's own writes.
    """

    query_endpoint: str
    update_endpoint: str
    resilience: ResilienceConfig
    call_scope: str = DEFAULT_CALL_SCOPE
    sudo: bool = True


def get_sparql_config() -> SparqlConfig:
    query_endpoint = env_str("MU_SPARQL_ENDPOINT", DEFAULT_SPARQL_ENDPOINT)
    update_endpoint = env_optional("MU_SPARQL_UPDATE_ENDPOINT") or query_endpoint
    max_calls = env_int("SPARQL_MAX_CALLS_PER_SECOND", 0, minimum=0)
    timeout = env_float("SPARQL_TIMEOUT_SECONDS", 0.0)

    resilience = ResilienceConfig(
        name="sparql",
        timeout_seconds=timeout if timeout > 0 else None,
        retry=RetryPolicy(total=env_int("SPARQL_RETRIES", 4, minimum=0)),
        ratelimit=RateLimit(max_calls=max_calls, per_seconds=1.0) if max_calls else None,
        default_headers={"Accept": "application/sparql-results+json"},
    )
    return SparqlConfig(
        query_endpoint=query_endpoint,
        update_endpoint=update_endpoint,
        resilience=resilience,
        call_scope=env_str("MU_CALL_SCOPE_ID", DEFAULT_CALL_SCOPE),
    )
