"""Application configuration helpers."""

from __future__ import annotations

from .dispatch import DispatchConfig, GraphConfig, get_dispatch_config
from .env import require_env_vars
from .errors import ConfigurationError, InvalidOwnershipPathsError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .ownership_paths import DEFAULT_OWNERSHIP_PATHS, load_ownership_paths
from .sparql import SparqlConfig, get_sparql_config

__all__ = [
    "DEFAULT_OWNERSHIP_PATHS",
    "ConfigurationError",
    "DispatchConfig",
    "GraphConfig",
    "InvalidOwnershipPathsError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SparqlConfig",
    "configure_logging",
    "get_dispatch_config",
    "get_sparql_config",
    "load_ownership_paths",
    "require_env_vars",
]
