"""
SPARQL HTTP Store
=================

Triple store backend speaking the SPARQL 1.1 protocol over HTTP, as
exposed by Virtuoso or a mu-semtech database service.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lfw_harvester.store.engine import StoreError, TripleStore

logger = logging.getLogger(__name__)

RESULTS_JSON = "application/sparql-results+json"


class SparqlStore(TripleStore):
    """
    SPARQL endpoint client.

    Queries and updates are sent form encoded. When ``sudo`` is set, the
    ``mu-auth-sudo`` header asks a mu-authorization layer to bypass access
    rules, which the harvester needs to write outside a user session.
    """

    def __init__(
        self,
        endpoint: str,
        update_endpoint: str | None = None,
        timeout: float = 60.0,
        sudo: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.update_endpoint = update_endpoint or endpoint
        self.timeout = timeout
        self.sudo = sudo
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _headers(self, accept: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if accept:
            headers["Accept"] = accept
        if self.sudo:
            headers["mu-auth-sudo"] = "true"
        return headers

    async def _post(self, url: str, data: dict[str, str], accept: str | None = None) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.post(url, data=data, headers=self._headers(accept))
        except httpx.HTTPError as e:
            raise StoreError(f"SPARQL request to {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"SPARQL endpoint answered {response.status_code}: {response.text[:500]}")
            raise StoreError(f"SPARQL endpoint {url} answered {response.status_code}")
        return response

    async def _select(self, sparql: str) -> dict[str, Any]:
        logger.debug(f"SPARQL query:\n{sparql}")
        response = await self._post(self.endpoint, {"query": sparql}, accept=RESULTS_JSON)
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"SPARQL endpoint returned invalid JSON: {e}") from e

    async def query(self, sparql: str) -> list[dict[str, str]]:
        """Run a SELECT query."""
        body = await self._select(sparql)
        bindings = body.get("results", {}).get("bindings", [])
        return [{name: term["value"] for name, term in row.items()} for row in bindings]

    async def ask(self, sparql: str) -> bool:
        """Run an ASK query."""
        body = await self._select(sparql)
        return bool(body.get("boolean", False))

    async def update(self, sparql: str) -> None:
        """Execute an update request."""
        logger.debug(f"SPARQL update:\n{sparql}")
        await self._post(self.update_endpoint, {"update": sparql})

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
