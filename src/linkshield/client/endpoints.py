"""Endpoint URLs and cache keys for every LinkShield lookup.

Each lookup stores its result under a key derived from its input:

=========================  ==========================================
Lookup                     Cache key
=========================  ==========================================
``check_url``              the URL itself
``get_detailed_check``     the URL suffixed with ``_detailed``
``perform_dynamic_...``    the derived dynamic-analysis endpoint URL
``check_domain_sim...``    the derived domain-similarity endpoint URL
=========================  ==========================================
"""

from __future__ import annotations

import base64

from linkshield.cache import DETAILED_KEY_SUFFIX

CLASSIFY_PATH = "/classify_link"
SCREENSHOT_PATH = "/screenshot"
DYNAMIC_ANALYSIS_PATH = "/dynamic_analysis"
DOMAIN_SIMILARITY_PATH = "/domain_similarity"


def check_url_endpoint(base_endpoint: str) -> str:
    return f"{base_endpoint}/"


def classify_endpoint(base_endpoint: str) -> str:
    return f"{base_endpoint}{CLASSIFY_PATH}"


def detailed_check_key(url: str) -> str:
    return f"{url}{DETAILED_KEY_SUFFIX}"


def encode_url(url: str) -> str:
    """Standard (padded) base64 of the UTF-8 bytes of *url*."""
    return base64.b64encode(url.encode("utf-8")).decode("ascii")


def dynamic_analysis_url(security_endpoint: str, url: str) -> str:
    """Dynamic-analysis endpoint for *url*; also its cache key."""
    return f"{security_endpoint}{DYNAMIC_ANALYSIS_PATH}/{encode_url(url)}"


def domain_similarity_url(security_endpoint: str, domain: str) -> str:
    """Domain-similarity endpoint for *domain*; also its cache key."""
    return f"{security_endpoint}{DOMAIN_SIMILARITY_PATH}/{domain}"


def screenshot_url(base_endpoint: str, file_name: str) -> str:
    return f"{base_endpoint}{SCREENSHOT_PATH}/{file_name}"
