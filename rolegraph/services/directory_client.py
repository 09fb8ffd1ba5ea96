# -*- coding: utf-8 -*-
"""Location: ./rolegraph/services/directory_client.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Entity directory client.

This module defines the query contract the hierarchy resolver consumes and an
HTTP adapter for the catalog REST API. The adapter owns connection pooling,
timeouts and connection retries; the resolver never retries.
"""

# Standard
import logging
from typing import Any, Dict, List, Optional, Protocol

# Third-Party
import httpx

# First-Party
from rolegraph.config import settings
from rolegraph.models import EntityQuery

logger = logging.getLogger(__name__)


class DirectoryQueryError(Exception):
    """Raised when the entity directory cannot answer a query.

    Examples:
        >>> error = DirectoryQueryError("Catalog query failed with HTTP 503", status_code=503)
        >>> error.status_code
        503
        >>> str(error)
        'Catalog query failed with HTTP 503'
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """Initialize the error.

        Args:
            message: Error description
            status_code: HTTP status returned by the directory, if any
        """
        super().__init__(message)
        self.status_code = status_code


class DirectoryClient(Protocol):
    """Query contract of the entity directory."""

    async def query(self, query: EntityQuery) -> List[Dict[str, Any]]:
        """Return entity documents matching ``query``, restricted to its projection."""
        ...  # pylint: disable=unnecessary-ellipsis


class CatalogDirectoryClient:
    """Directory client backed by the catalog ``/entities`` endpoint.

    Examples:
        >>> import asyncio
        >>> client = CatalogDirectoryClient(base_url="http://catalog:7007/api/catalog/", token="t0k")
        >>> client.base_url
        'http://catalog:7007/api/catalog'
        >>> asyncio.iscoroutinefunction(client.query)
        True
        >>> asyncio.run(client.aclose())
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        verify: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the catalog client.

        Args:
            base_url: Catalog API base URL, defaults to ``settings.catalog_base_url``
            token: Bearer token, defaults to ``settings.catalog_token``
            timeout: Request timeout in seconds
            max_retries: Connection retries per request
            verify: Whether to verify TLS certificates
            transport: Custom transport, mainly for tests
        """
        self.base_url = (base_url or settings.catalog_base_url).rstrip("/")
        if token is None and settings.catalog_token is not None:
            token = settings.catalog_token.get_secret_value()
        if verify is None:
            verify = not settings.skip_ssl_verify
        if transport is None:
            transport = httpx.AsyncHTTPTransport(retries=settings.catalog_max_retries if max_retries is None else max_retries, verify=verify)

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout or settings.catalog_timeout,
            transport=transport,
        )

    async def query(self, query: EntityQuery) -> List[Dict[str, Any]]:
        """Run an entity query against the catalog.

        Args:
            query: Relation query to run

        Returns:
            List[Dict[str, Any]]: Matching entity documents

        Raises:
            DirectoryQueryError: On transport failures, non-success HTTP
                statuses, or an unexpected response body
        """
        params = query.to_params()
        logger.debug(f"Querying catalog entities with filter {params['filter']}")
        try:
            response = await self._client.get("/entities", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise DirectoryQueryError(f"Catalog query failed with HTTP {status_code}", status_code=status_code) from e
        except httpx.HTTPError as e:
            raise DirectoryQueryError(f"Catalog query failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DirectoryQueryError("Catalog returned a non-JSON response") from e

        items = payload.get("items") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise DirectoryQueryError("Catalog returned an unexpected response shape")
        return items

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "CatalogDirectoryClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
