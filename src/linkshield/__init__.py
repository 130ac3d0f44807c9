"""linkshield -- cache-first client for the LinkShield URL-reputation service.

The package wraps a handful of HTTP GET lookups, normalises the service's
textual verdicts into numeric scores and keeps every answer in a local,
file-backed cache so that repeated lookups never hit the network twice.

Typical use::

    from linkshield import ClientConfig, LinkShield

    with LinkShield(ClientConfig(api_key="API_KEY", cache_file="cache.json")) as shield:
        shield.check_url("https://example.com")            # 0, 0.5, 1 or -1
        shield.get_detailed_check("https://example.com")   # DetailedResult
        shield.perform_dynamic_analysis("https://example.com")
        shield.check_domain_similarity("example.com")      # [DomainSimilarityResult]
        shield.get_screenshot_url("screenshot.png")

Modules:
    client: :class:`LinkShield` and :class:`AsyncLinkShield`.
    cache: :class:`~linkshield.cache.VerdictCache` and its storage backends.
    models: Pydantic models for config, responses and cache entries.
    verdicts: Verdict-to-score mapping.
    exceptions: Exception hierarchy with exit-code mapping.
    config: XDG paths and CLI configuration resolution.
    app: The ``linkshield`` command-line interface.
"""

__version__ = "0.1.0"

from linkshield.client import AsyncLinkShield, LinkShield  # noqa: E402
from linkshield.exceptions import (  # noqa: E402
    CacheError,
    LinkShieldError,
    ResponseParseError,
    TransportError,
)
from linkshield.models import (  # noqa: E402
    ClientConfig,
    DetailedResult,
    DomainSimilarityResult,
    DynamicAnalysisResult,
    SimpleResult,
)
from linkshield.verdicts import map_result_to_number  # noqa: E402

__all__ = [
    "AsyncLinkShield",
    "CacheError",
    "ClientConfig",
    "DetailedResult",
    "DomainSimilarityResult",
    "DynamicAnalysisResult",
    "LinkShield",
    "LinkShieldError",
    "ResponseParseError",
    "SimpleResult",
    "TransportError",
    "map_result_to_number",
]
