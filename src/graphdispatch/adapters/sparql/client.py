"""HTTP client for the SPARQL query and update endpoints."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from graphdispatch.adapters.http_resilience import ResilienceConfig, ResilientClient
from graphdispatch.domain.errors import StoreError

from .namespaces import SPARQL_PREFIXES
from .schema import SparqlResults, parse_sparql_results

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from graphdispatch.config.sparql import SparqlConfig

log = getLogger(__name__)

SUDO_HEADER = "mu-auth-sudo"
SCOPE_HEADER = "mu-call-scope-id"

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class SparqlClient:
    """Send queries and updates with the sudo and call-scope headers.

    Every request is prefixed with the shared ``PREFIX`` block. Transport
    failures, error statuses and unreadable result documents surface as
    ``StoreError``.
    """

    def __init__(
        self,
        config: SparqlConfig,
        *,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self.config = config
        self._client = client_factory(config.resilience)

    async def __aenter__(self) -> SparqlClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def query(self, text: str) -> SparqlResults:
        response = await self._post(
            self.config.query_endpoint, {"query": f"{SPARQL_PREFIXES}\n{text}"}, self._headers()
        )
        try:
            return parse_sparql_results(response.json())
        except (ValueError, ValidationError) as exc:
            raise StoreError(f"Unreadable SPARQL results from {response.url}: {exc}") from exc

    async def update(self, text: str) -> None:
        headers = self._headers()
        headers[SCOPE_HEADER] = self.config.call_scope
        await self._post(
            self.config.update_endpoint, {"update": f"{SPARQL_PREFIXES}\n{text}"}, headers
        )

    def _headers(self) -> dict[str, str]:
        return {SUDO_HEADER: "true"} if self.config.sudo else {}

    async def _post(
        self, url: str, data: dict[str, str], headers: dict[str, str]
    ) -> httpx.Response:
        try:
            response = await self._client.post(url, data=data, headers=headers)
        except httpx.HTTPError as exc:
            raise StoreError(f"SPARQL request to {url} failed: {exc}") from exc
        if response.is_error:
            log.debug("SPARQL endpoint answered %s: %s", response.status_code, response.text)
            raise StoreError(
                f"SPARQL endpoint {url} answered {response.status_code}: {response.text[:500]}"
            )
        return response
