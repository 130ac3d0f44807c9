"""Synchronous LinkShield client.

This module provides :class:`LinkShield`, the blocking client built on
:class:`httpx.Client`.  Every lookup is cache-first: the
:class:`~linkshield.cache.VerdictCache` is consulted before any request, a
miss stores the parsed response and flushes the cache to storage.

There is deliberately no retry layer and no timeout beyond the transport's
default.  Network errors surface as
:class:`~linkshield.exceptions.TransportError`, undecodable bodies as
:class:`~linkshield.exceptions.ResponseParseError`.

See Also:
    :class:`~linkshield.client.async_client.AsyncLinkShield` for the
    asyncio equivalent.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from linkshield.cache import CacheStorage
from linkshield.cache.cache import ErrorCallback
from linkshield.client import endpoints
from linkshield.client.base import BaseLinkShield
from linkshield.models import (
    ClientConfig,
    DetailedResult,
    DomainSimilarityEntry,
    DomainSimilarityResult,
    DynamicAnalysisResult,
    SimpleResult,
)
from linkshield.verdicts import map_result_to_number

logger = logging.getLogger(__name__)


class LinkShield(BaseLinkShield):
    """Blocking client for the LinkShield URL-reputation service.

    The cache is loaded from storage when the client is constructed.  The
    HTTP connection pool is opened lazily on the first request and released
    by :meth:`close` or by leaving the ``with`` block.

    Args:
        config: API key, cache file and endpoint settings.
        storage: Cache backend.  Defaults to a
            :class:`~linkshield.cache.JsonFileStorage` at
            ``config.cache_file``.
        on_error: Receives cache persistence failures.
        transport: Optional :class:`httpx.BaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.

    Example::

        config = ClientConfig(api_key="API_KEY", cache_file="cache.json")
        with LinkShield(config) as shield:
            score = shield.check_url("https://example.com")
    """

    def __init__(
        self,
        config: ClientConfig,
        storage: Optional[CacheStorage] = None,
        on_error: Optional[ErrorCallback] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(config, storage=storage, on_error=on_error)
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> LinkShield:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP connection pool and the cache backend."""
        if self._client:
            self._client.close()
            self._client = None
        self._cache.close()

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def check_url(self, url: str) -> float:
        """Check whether *url* is a phishing link.

        Returns:
            The verdict score: ``0`` safe, ``0.5`` nothing detected, ``1``
            malicious, ``-1`` unknown.

        Raises:
            TransportError: The service could not be reached.
            ResponseParseError: The body was not a valid verdict.
        """
        cached = self._cache.get(url, SimpleResult)
        if cached is not None:
            return map_result_to_number(cached.result)

        response = self._get(
            endpoints.check_url_endpoint(self._config.base_endpoint),
            params=self._key_params(url),
        )
        data = self._parse(response, SimpleResult)
        self._cache.put(url, data)
        return map_result_to_number(data.result)

    def get_detailed_check(self, url: str) -> DetailedResult:
        """Return the classifier's detailed report for *url*.

        The report is returned as stored; no score mapping is applied.  Its
        ``screenshot_url`` can be turned into a link with
        :meth:`get_screenshot_url`.
        """
        key = endpoints.detailed_check_key(url)
        cached = self._cache.get(key, DetailedResult)
        if cached is not None:
            return cached

        response = self._get(
            endpoints.classify_endpoint(self._config.base_endpoint),
            params=self._key_params(url),
        )
        data = self._parse(response, DetailedResult)
        self._cache.put(key, data)
        return data

    def perform_dynamic_analysis(self, url: str) -> float:
        """Run (or recall) a dynamic analysis of *url*.

        A fresh answer whose ``response`` is not ``"200"`` scores ``-1``.
        A cached answer is always scored from its ``result`` field.
        """
        analysis_url = self._dynamic_analysis_url(url)
        cached = self._cache.get(analysis_url, DynamicAnalysisResult)
        if cached is not None:
            return map_result_to_number(cached.result)

        response = self._get(analysis_url)
        data = self._parse(response, DynamicAnalysisResult)
        self._cache.put(analysis_url, data)
        return self._score_dynamic_analysis(data)

    def check_domain_similarity(self, domain: str) -> list[DomainSimilarityResult]:
        """Return the known domains *domain* resembles, as reported by the service."""
        similarity_url = self._domain_similarity_url(domain)
        cached = self._cache.get(similarity_url, DomainSimilarityEntry)
        if cached is not None:
            return cached.matches

        response = self._get(similarity_url)
        entry = self._parse_similarity(response)
        self._cache.put(similarity_url, entry)
        return entry.matches

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                verify=self._config.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            return self._http().get(url, params=params)
        except httpx.HTTPError as exc:
            raise self._transport_error(url, exc) from exc
