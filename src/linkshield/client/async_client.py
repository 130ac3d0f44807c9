"""Asynchronous LinkShield client -- mirrors :class:`~linkshield.client.sync_client.LinkShield` API.

This module provides :class:`AsyncLinkShield`, the non-blocking counterpart
to :class:`~linkshield.client.sync_client.LinkShield`.  It wraps
:class:`httpx.AsyncClient` and offers the same cache-first lookups with the
same keys, so both clients can share one cache file.

.. note::
   Cache reads are in-memory.  A lookup suspends at the HTTP request and at
   the cache flush, which runs in a worker thread via
   :func:`asyncio.to_thread` so a slow disk never stalls the event loop.
   The snapshot itself is loaded once, when the client is constructed.

Concurrent lookups on one instance share the in-memory mapping, so two
misses for different keys both end up in the next flush.  Nothing guards
the file against other instances or processes using the same path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from linkshield.cache import CacheStorage
from linkshield.cache.cache import ErrorCallback
from linkshield.client import endpoints
from linkshield.client.base import BaseLinkShield
from linkshield.models import (
    CacheEntry,
    ClientConfig,
    DetailedResult,
    DomainSimilarityEntry,
    DomainSimilarityResult,
    DynamicAnalysisResult,
    SimpleResult,
)
from linkshield.verdicts import map_result_to_number

logger = logging.getLogger(__name__)


class AsyncLinkShield(BaseLinkShield):
    """Asyncio client for the LinkShield URL-reputation service.

    Provides the same lookups as :class:`~linkshield.client.sync_client.LinkShield`
    as coroutines.  Use it as an async context manager, or call
    :meth:`aclose` when done.

    Args:
        config: API key, cache file and endpoint settings.
        storage: Cache backend.  Defaults to a
            :class:`~linkshield.cache.JsonFileStorage` at
            ``config.cache_file``.
        on_error: Receives cache persistence failures.
        transport: Optional :class:`httpx.AsyncBaseTransport`.

    Example::

        async with AsyncLinkShield(config) as shield:
            score = await shield.check_url("https://example.com")
    """

    def __init__(
        self,
        config: ClientConfig,
        storage: Optional[CacheStorage] = None,
        on_error: Optional[ErrorCallback] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(config, storage=storage, on_error=on_error)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncLinkShield:
        self._http()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP connection pool and the cache backend."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._cache.close()

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    async def check_url(self, url: str) -> float:
        """Async version of :meth:`LinkShield.check_url <linkshield.client.sync_client.LinkShield.check_url>`."""
        cached = self._cache.get(url, SimpleResult)
        if cached is not None:
            return map_result_to_number(cached.result)

        response = await self._get(
            endpoints.check_url_endpoint(self._config.base_endpoint),
            params=self._key_params(url),
        )
        data = self._parse(response, SimpleResult)
        await self._store(url, data)
        return map_result_to_number(data.result)

    async def get_detailed_check(self, url: str) -> DetailedResult:
        """Async version of :meth:`LinkShield.get_detailed_check <linkshield.client.sync_client.LinkShield.get_detailed_check>`."""
        key = endpoints.detailed_check_key(url)
        cached = self._cache.get(key, DetailedResult)
        if cached is not None:
            return cached

        response = await self._get(
            endpoints.classify_endpoint(self._config.base_endpoint),
            params=self._key_params(url),
        )
        data = self._parse(response, DetailedResult)
        await self._store(key, data)
        return data

    async def perform_dynamic_analysis(self, url: str) -> float:
        """Async version of :meth:`LinkShield.perform_dynamic_analysis <linkshield.client.sync_client.LinkShield.perform_dynamic_analysis>`."""
        analysis_url = self._dynamic_analysis_url(url)
        cached = self._cache.get(analysis_url, DynamicAnalysisResult)
        if cached is not None:
            return map_result_to_number(cached.result)

        response = await self._get(analysis_url)
        data = self._parse(response, DynamicAnalysisResult)
        await self._store(analysis_url, data)
        return self._score_dynamic_analysis(data)

    async def check_domain_similarity(self, domain: str) -> list[DomainSimilarityResult]:
        """Async version of :meth:`LinkShield.check_domain_similarity <linkshield.client.sync_client.LinkShield.check_domain_similarity>`."""
        similarity_url = self._domain_similarity_url(domain)
        cached = self._cache.get(similarity_url, DomainSimilarityEntry)
        if cached is not None:
            return cached.matches

        response = await self._get(similarity_url)
        entry = self._parse_similarity(response)
        await self._store(similarity_url, entry)
        return entry.matches

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self._config.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _store(self, key: str, entry: CacheEntry) -> None:
        await asyncio.to_thread(self._cache.put, key, entry)

    async def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            return await self._http().get(url, params=params)
        except httpx.HTTPError as exc:
            raise self._transport_error(url, exc) from exc
