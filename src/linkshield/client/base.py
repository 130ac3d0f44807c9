"""State and response handling shared by the sync and async clients.

:class:`BaseLinkShield` owns the :class:`~linkshield.cache.VerdictCache`,
derives endpoint URLs and cache keys, and turns raw :class:`httpx.Response`
objects into validated models.  It does no I/O of its own; the blocking
:class:`~linkshield.client.sync_client.LinkShield` and the asyncio
:class:`~linkshield.client.async_client.AsyncLinkShield` add the transport.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from linkshield.cache import CacheStorage, JsonFileStorage, VerdictCache
from linkshield.cache.cache import ErrorCallback
from linkshield.client import endpoints
from linkshield.exceptions import ResponseParseError, TransportError
from linkshield.models import (
    DOMAIN_SIMILARITY_LIST_ADAPTER,
    ClientConfig,
    DomainSimilarityEntry,
    DynamicAnalysisResult,
)
from linkshield.verdicts import SCORE_UNKNOWN, map_result_to_number

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DYNAMIC_ANALYSIS_OK = "200"


class BaseLinkShield:
    """Configuration, cache and parsing common to both clients.

    Args:
        config: API key, cache file and endpoint settings.
        storage: Cache backend.  Defaults to a :class:`JsonFileStorage` at
            ``config.cache_file``.
        on_error: Receives cache persistence failures (see
            :class:`~linkshield.cache.VerdictCache`).
    """

    def __init__(
        self,
        config: ClientConfig,
        storage: Optional[CacheStorage] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._config = config
        self._cache = VerdictCache(
            storage if storage is not None else JsonFileStorage(config.cache_file),
            on_error=on_error,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> VerdictCache:
        return self._cache

    def get_screenshot_url(self, file_name: str) -> str:
        """Return the public URL of a screenshot taken by the detailed check.

        Pure string formatting: no cache lookup and no request.

        Example::

            shield.get_screenshot_url("a.png")
            # 'https://api.linkshieldai.com/screenshot/a.png'
        """
        return endpoints.screenshot_url(self._config.base_endpoint, file_name)

    # ------------------------------------------------------------------ #
    # Helpers for subclasses
    # ------------------------------------------------------------------ #

    def _key_params(self, url: str) -> dict[str, str]:
        return {"key": self._config.api_key, "url": url}

    def _dynamic_analysis_url(self, url: str) -> str:
        return endpoints.dynamic_analysis_url(self._config.security_endpoint, url)

    def _domain_similarity_url(self, domain: str) -> str:
        return endpoints.domain_similarity_url(self._config.security_endpoint, domain)

    @staticmethod
    def _score_dynamic_analysis(data: DynamicAnalysisResult) -> float:
        """Score a freshly fetched analysis; unfinished analyses score ``-1``."""
        if data.response != DYNAMIC_ANALYSIS_OK:
            logger.debug(
                "Dynamic analysis answered %r (%s)", data.response, data.reason or "no reason"
            )
            return SCORE_UNKNOWN
        return map_result_to_number(data.result)

    @staticmethod
    def _transport_error(url: str, exc: httpx.HTTPError) -> TransportError:
        return TransportError(f"Request to {url} failed: {exc}")

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Decode the JSON body, whatever the status code."""
        try:
            return response.json()
        except ValueError as exc:
            snippet = response.text[:200] if response.text else ""
            raise ResponseParseError(
                f"{_public_url(response)} returned a non-JSON body "
                f"(HTTP {response.status_code}): {snippet!r}"
            ) from exc

    @classmethod
    def _parse(cls, response: httpx.Response, model: type[M]) -> M:
        """Validate a JSON object body into *model*.

        Any other JSON value is kept under a ``body`` field so the lookup
        still succeeds (and scores ``-1``).
        """
        data = cls._decode(response)
        if not isinstance(data, dict):
            logger.warning(
                "%s returned a JSON %s instead of an object",
                _public_url(response),
                type(data).__name__,
            )
            data = {"body": data}
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ResponseParseError(
                f"Unexpected {model.__name__} payload: {exc.errors(include_url=False)}"
            ) from exc

    @classmethod
    def _parse_similarity(cls, response: httpx.Response) -> DomainSimilarityEntry:
        """Validate a domain-similarity body.

        The service answers with a list of matches, or with an object such as
        ``{"response": "404", "reason": ...}`` when it has nothing to say.
        The latter becomes an entry without matches that keeps its fields.
        """
        data = cls._decode(response)
        if not isinstance(data, list):
            logger.warning("%s returned no match list: %r", _public_url(response), data)
            fields = data if isinstance(data, dict) else {"body": data}
            return DomainSimilarityEntry.model_validate(
                {**fields, "kind": "domain_similarity", "matches": []}
            )
        try:
            matches = DOMAIN_SIMILARITY_LIST_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise ResponseParseError(
                f"Unexpected domain similarity payload: {exc.errors(include_url=False)}"
            ) from exc
        return DomainSimilarityEntry(matches=matches)


def _public_url(response: httpx.Response) -> str:
    # Query strings carry the API key; keep them out of messages.
    url = response.request.url
    return f"{url.scheme}://{url.host}{url.path}"
