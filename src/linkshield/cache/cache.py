"""The verdict cache: a flat key-to-entry mapping persisted as one snapshot.

:class:`VerdictCache` is owned by a single client instance.  It loads the
snapshot once, at construction, and writes the whole mapping back after
every :meth:`~VerdictCache.put`.  There is no expiry and no eviction.

Entries are tagged pydantic models (see :data:`~linkshield.models.CacheEntry`),
so a lookup asks for a specific entry type and gets ``None`` when the key
holds something else.

Persistence never fails a lookup.  Load and save errors are logged, wrapped
in :class:`~linkshield.exceptions.CacheError` and handed to the optional
``on_error`` callback:

* a failed load leaves the cache empty for the lifetime of the instance;
* a failed save keeps the new entry in memory, so memory and storage stay
  out of step until the next successful save.

Snapshots written by older clients hold raw response bodies without a
``kind`` tag.  Those are accepted on load and their kind is inferred from
the key pattern; entries that still fail validation are dropped one by one.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Any, Callable, Iterator, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from linkshield.cache.storage import CacheStorage
from linkshield.exceptions import CacheError
from linkshield.models import CACHE_ENTRY_ADAPTER, CacheEntry

logger = logging.getLogger(__name__)

DETAILED_KEY_SUFFIX = "_detailed"

E = TypeVar("E", bound=BaseModel)

ErrorCallback = Callable[[CacheError], None]


class VerdictCache:
    """In-memory verdict mapping backed by a :class:`CacheStorage`.

    Args:
        storage: Backend holding the persisted snapshot.
        on_error: Called with a :class:`~linkshield.exceptions.CacheError`
            whenever loading or saving fails.  With the async client this
            happens on a worker thread.  Exceptions raised by the
            callback itself propagate.

    Example::

        from linkshield.cache import JsonFileStorage, VerdictCache
        from linkshield.models import SimpleResult

        cache = VerdictCache(JsonFileStorage("cache.json"))
        cache.put("https://example.com", SimpleResult(result="Safe"))
        hit = cache.get("https://example.com", SimpleResult)
    """

    def __init__(self, storage: CacheStorage, on_error: Optional[ErrorCallback] = None) -> None:
        self._storage = storage
        self._on_error = on_error
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._load()

    @property
    def storage(self) -> CacheStorage:
        return self._storage

    # ------------------------------------------------------------------ #
    # Lookup and mutation
    # ------------------------------------------------------------------ #

    def get(self, key: str, entry_type: type[E]) -> Optional[E]:
        """Return the entry stored under *key* if it is an *entry_type*.

        A key holding a different kind of entry counts as a miss; the caller
        then fetches a fresh value and :meth:`put` replaces the stale one.
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: %s", key)
            return None
        if not isinstance(entry, entry_type):
            logger.warning(
                "Cache entry for %s is %r, expected %r; ignoring it",
                key,
                entry.kind,
                entry_type.model_fields["kind"].default,
            )
            return None
        logger.debug("Cache hit: %s", key)
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store *entry* under *key* and flush the whole mapping to storage.

        May be called from worker threads.  Puts are serialised, so the last
        save always holds every stored entry.
        """
        with self._lock:
            self._entries[key] = entry
            self.flush()

    def flush(self) -> bool:
        """Write the whole mapping to storage.

        Returns:
            ``True`` on success, ``False`` if the save failed (the failure
            has been logged and reported to ``on_error``).
        """
        with self._lock:
            snapshot = {
                key: entry.model_dump(mode="json", by_alias=True, exclude_none=True)
                for key, entry in self._entries.items()
            }
            try:
                self._storage.save(snapshot)
            except Exception as exc:
                self._report("save", exc)
                return False
            return True

    def clear(self) -> None:
        """Remove every entry and flush the now-empty mapping."""
        with self._lock:
            self._entries.clear()
            self.flush()

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``size`` (number of entries), ``kinds`` (entry
            count per kind), ``backend`` (storage class name) and
            ``location`` (where the snapshot lives, or ``None``).
        """
        with self._lock:
            kinds = Counter(entry.kind for entry in self._entries.values())
        return {
            "size": len(self._entries),
            "kinds": dict(sorted(kinds.items())),
            "backend": type(self._storage).__name__,
            "location": self._storage.location,
        }

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def close(self) -> None:
        """Release the storage backend's resources."""
        self._storage.close()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _load(self) -> None:
        try:
            raw = self._storage.load()
        except Exception as exc:
            self._report("load", exc)
            return

        for key, value in raw.items():
            try:
                self._entries[key] = _parse_entry(key, value)
            except ValidationError as exc:
                logger.warning(
                    "Dropping unreadable cache entry %s: %s",
                    key,
                    exc.errors(include_url=False),
                )
        logger.debug("Loaded %d cache entries", len(self._entries))

    def _report(self, operation: str, exc: Exception) -> None:
        logger.warning("Error %s verdict cache: %s", _VERBS[operation], exc)
        if self._on_error is not None:
            error = CacheError(operation, str(exc))
            error.__cause__ = exc
            self._on_error(error)


_VERBS = {"load": "loading", "save": "saving"}


def _parse_entry(key: str, value: Any) -> CacheEntry:
    """Validate one stored value, inferring the kind of untagged legacy entries."""
    if isinstance(value, list):
        value = {"kind": "domain_similarity", "matches": value}
    elif isinstance(value, dict) and "kind" not in value:
        value = {"kind": _infer_kind(key), **value}
    return CACHE_ENTRY_ADAPTER.validate_python(value)


def _infer_kind(key: str) -> str:
    if key.endswith(DETAILED_KEY_SUFFIX):
        return "detailed"
    if "/dynamic_analysis/" in key:
        return "dynamic_analysis"
    if "/domain_similarity/" in key:
        return "domain_similarity"
    return "simple"
