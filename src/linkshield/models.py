"""Canonical Pydantic models shared across all linkshield modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- :class:`ClientConfig`, the construction settings of a
:class:`~linkshield.client.LinkShield` client.

**Service responses** -- one model per endpoint:
    :class:`SimpleResult` (``/``), :class:`DetailedResult`
    (``/classify_link``), :class:`DynamicAnalysisResult`
    (``dynamic_analysis/{b64}``) and :class:`DomainSimilarityResult`
    (``domain_similarity/{domain}``, returned as a list).

**Cache entries** -- every response model carries a ``kind`` literal so that
a stored value can be validated back into the right shape.  The
:data:`CacheEntry` annotated union dispatches on that discriminator;
:class:`DomainSimilarityEntry` wraps the list payload so it can carry a tag
too.

Response models use ``extra="allow"`` so that fields the service adds later
survive the round trip through the cache untouched.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

DEFAULT_BASE_ENDPOINT = "https://api.linkshieldai.com"
DEFAULT_SECURITY_ENDPOINT = "https://api.vladhog.ru/security"


# --- Configuration ---


class ClientConfig(BaseModel):
    """Construction settings for a LinkShield client.

    ``api_key`` and ``cache_file`` are required and deliberately unvalidated:
    the key is appended verbatim to the query string and the path is only
    touched when the cache is loaded or flushed.

    Example::

        ClientConfig(api_key="API_KEY", cache_file="cache.json")
    """

    api_key: str = Field(description="LinkShield API key sent as the ``key`` query parameter")
    cache_file: Path = Field(description="JSON file holding the persisted verdict cache")
    base_endpoint: str = Field(
        default=DEFAULT_BASE_ENDPOINT, description="LinkShield API root"
    )
    security_endpoint: str = Field(
        default=DEFAULT_SECURITY_ENDPOINT,
        description="Root of the dynamic-analysis and domain-similarity services",
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")

    @field_validator("base_endpoint", "security_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


# --- Service responses ---


class SimpleResult(BaseModel):
    """Body of ``GET /?key=..&url=..``.

    ``result`` holds the textual verdict (see
    :func:`~linkshield.verdicts.map_result_to_number`).  The service reports
    problems in-band through an ``Error`` field instead of the status code.

    Fields are left untyped: whatever the service puts in ``result`` is kept
    as is and scored later, so an unrecognised value maps to ``-1`` instead of
    failing the lookup.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: Literal["simple"] = "simple"
    result: Any = None
    error: Any = Field(default=None, alias="Error")


class DetailedResult(BaseModel):
    """Body of ``GET /classify_link?key=..&url=..``.

    Example payload::

        {"result": "Might be malicious", "screenshot url": "abc.png", "tag": "phishing"}
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: Literal["detailed"] = "detailed"
    result: Any = None
    screenshot_url: Any = Field(default=None, alias="screenshot url")
    tag: Any = None
    error: Any = Field(default=None, alias="Error")


class DynamicAnalysisResult(BaseModel):
    """Body of ``GET {security}/dynamic_analysis/{base64(url)}``.

    ``response`` is the service's own status string; only the literal
    ``"200"`` marks a completed analysis.  ``result`` is usually a verdict
    string or the list of detections found on the page.
    """

    model_config = ConfigDict(extra="allow")

    kind: Literal["dynamic_analysis"] = "dynamic_analysis"
    response: Any = None
    reason: Any = None
    result: Any = None


class DomainSimilarityResult(BaseModel):
    """One element of the ``GET {security}/domain_similarity/{domain}`` list."""

    model_config = ConfigDict(extra="allow")

    similar_to: str
    similarity_percent: float


# --- Cache entries ---


class DomainSimilarityEntry(BaseModel):
    """Cache wrapper around a domain-similarity list.

    When the service answers with an object instead of a list (e.g.
    ``{"response": "404", "reason": "..."}``), ``matches`` is empty and the
    object's fields are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    kind: Literal["domain_similarity"] = "domain_similarity"
    matches: list[DomainSimilarityResult] = Field(default_factory=list)


CacheEntry = Annotated[
    Union[SimpleResult, DetailedResult, DynamicAnalysisResult, DomainSimilarityEntry],
    Field(discriminator="kind"),
]
"""Tagged union of everything the verdict cache can hold."""

CACHE_ENTRY_ADAPTER: TypeAdapter[CacheEntry] = TypeAdapter(CacheEntry)

DOMAIN_SIMILARITY_LIST_ADAPTER: TypeAdapter[list[DomainSimilarityResult]] = TypeAdapter(
    list[DomainSimilarityResult]
)
