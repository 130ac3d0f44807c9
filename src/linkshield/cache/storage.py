"""Storage backends for the verdict cache snapshot.

A backend persists one thing: the whole cache mapping, as a JSON-ready
``dict``.  :class:`~linkshield.cache.VerdictCache` reads it once at
construction and writes it back in full after every mutation, so backends
only need a whole-snapshot ``load``/``save`` pair.

Backends raise on failure.  Swallowing and reporting persistence errors is
the job of :class:`~linkshield.cache.VerdictCache`, not of the backend.

Available backends:

* :class:`JsonFileStorage` -- a single JSON object file (the default).
* :class:`DiskCacheStorage` -- the snapshot stored under one key of a
  :mod:`diskcache` directory.
* :class:`MemoryStorage` -- in-process only; used by tests and for
  throwaway clients.
"""

from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import diskcache

from linkshield.config import atomic_write


class CacheStorage(ABC):
    """Interface for persisting the verdict cache snapshot."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return the persisted snapshot, or an empty dict if there is none.

        Raises:
            Exception: Any I/O or decoding failure. The caller decides
                whether it is fatal.
        """

    @abstractmethod
    def save(self, data: dict[str, Any]) -> None:
        """Replace the persisted snapshot with *data*."""

    @property
    def location(self) -> Optional[str]:
        """Human-readable location of the snapshot, if it has one."""
        return None

    def close(self) -> None:
        """Release any resources held by the backend."""


class JsonFileStorage(CacheStorage):
    """Whole-file JSON snapshot.

    The file holds a single JSON object mapping cache keys to entries.  A
    missing file loads as an empty mapping; anything that is not a JSON
    object raises :class:`ValueError`.  Saves are atomic (temp file +
    rename), so readers never observe a half-written file.

    Args:
        path: Location of the snapshot file. Parent directories are created
            on the first save.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> Optional[str]:
        return str(self._path)

    def load(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(
                f"Expected a JSON object in {self._path}, got {type(data).__name__}"
            )
        return data

    def save(self, data: dict[str, Any]) -> None:
        atomic_write(self._path, json.dumps(data, ensure_ascii=False))


class DiskCacheStorage(CacheStorage):
    """Snapshot stored under a single key of a :class:`diskcache.Cache`.

    Useful when an application already keeps a diskcache directory and wants
    the verdicts next to its other cached data.

    Args:
        directory: The diskcache directory. Created if it does not exist.
        key: Key under which the snapshot is stored.
    """

    def __init__(self, directory: str | Path, key: str = "linkshield-verdicts") -> None:
        self._directory = Path(directory)
        self._key = key
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def location(self) -> Optional[str]:
        return f"{self._directory}#{self._key}"

    def load(self) -> dict[str, Any]:
        data = self._cache.get(self._key)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(
                f"Expected a dict under '{self._key}', got {type(data).__name__}"
            )
        return data

    def save(self, data: dict[str, Any]) -> None:
        self._cache.set(self._key, data)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()


class MemoryStorage(CacheStorage):
    """In-process snapshot, never touches the filesystem.

    Snapshots are deep-copied in both directions so that later mutations of
    the live cache do not leak into the "persisted" copy.

    Args:
        initial: Optional snapshot returned by the first :meth:`load`.

    Attributes:
        save_count: Number of completed :meth:`save` calls.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.save_count = 0

    @property
    def data(self) -> dict[str, Any]:
        """The last saved snapshot."""
        return self._data

    def load(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def save(self, data: dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)
        self.save_count += 1
