"""HTTP clients for the LinkShield service.

Exports :class:`LinkShield` (blocking, :class:`httpx.Client`) and
:class:`AsyncLinkShield` (:class:`httpx.AsyncClient`).  Both are cache-first
and share the same cache keys, see :mod:`linkshield.client.endpoints`.
"""

from linkshield.client.async_client import AsyncLinkShield
from linkshield.client.sync_client import LinkShield

__all__ = ["AsyncLinkShield", "LinkShield"]
