"""Tests for the VerdictCache module."""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

import pytest

from linkshield.cache import CacheStorage, JsonFileStorage, MemoryStorage, VerdictCache
from linkshield.exceptions import CacheError
from linkshield.models import (
    DetailedResult,
    DomainSimilarityEntry,
    DomainSimilarityResult,
    DynamicAnalysisResult,
    SimpleResult,
)


class BrokenStorage(CacheStorage):
    """Storage whose load and/or save always fail."""

    def __init__(self, fail_load: bool = False, fail_save: bool = False) -> None:
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.saved: list[dict[str, Any]] = []

    def load(self) -> dict[str, Any]:
        if self.fail_load:
            raise OSError("disk on fire")
        return {}

    def save(self, data: dict[str, Any]) -> None:
        if self.fail_save:
            raise OSError("read-only filesystem")
        self.saved.append(data)


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def cache(storage: MemoryStorage) -> VerdictCache:
    return VerdictCache(storage)


# ------------------------------------------------------------------ #
# Core get/put behaviour
# ------------------------------------------------------------------ #


class TestGetPut:
    def test_put_and_get(self, cache: VerdictCache) -> None:
        cache.put("https://example.com", SimpleResult(result="Safe"))
        hit = cache.get("https://example.com", SimpleResult)
        assert hit is not None
        assert hit.result == "Safe"

    def test_miss_returns_none(self, cache: VerdictCache) -> None:
        assert cache.get("https://missing.example", SimpleResult) is None

    def test_put_flushes_full_mapping(self, cache: VerdictCache, storage: MemoryStorage) -> None:
        cache.put("a", SimpleResult(result="Safe"))
        cache.put("b", SimpleResult(result="Might be malicious"))
        assert storage.save_count == 2
        assert storage.data == {
            "a": {"kind": "simple", "result": "Safe"},
            "b": {"kind": "simple", "result": "Might be malicious"},
        }

    def test_put_overwrites_same_key(self, cache: VerdictCache) -> None:
        cache.put("a", SimpleResult(result="Safe"))
        cache.put("a", SimpleResult(result="Might be malicious"))
        assert len(cache) == 1
        assert cache.get("a", SimpleResult).result == "Might be malicious"

    def test_contains_len_keys(self, cache: VerdictCache) -> None:
        cache.put("a", SimpleResult(result="Safe"))
        cache.put("b_detailed", DetailedResult(tag="phishing"))
        assert "a" in cache
        assert "c" not in cache
        assert len(cache) == 2
        assert sorted(cache.keys()) == ["a", "b_detailed"]
        assert sorted(cache) == ["a", "b_detailed"]


# ------------------------------------------------------------------ #
# Tagged entries
# ------------------------------------------------------------------ #


class TestEntryKinds:
    def test_wrong_kind_is_a_miss(self, cache: VerdictCache, caplog) -> None:
        cache.put("https://example.com", DetailedResult(result="Safe"))
        with caplog.at_level(logging.WARNING, logger="linkshield"):
            assert cache.get("https://example.com", SimpleResult) is None
        assert "expected 'simple'" in caplog.text

    def test_all_kinds_round_trip_through_storage(self, storage: MemoryStorage) -> None:
        cache = VerdictCache(storage)
        cache.put("s", SimpleResult(result="Safe"))
        cache.put("d_detailed", DetailedResult(result="Safe", screenshot_url="x.png"))
        cache.put("dyn", DynamicAnalysisResult(response="200", result=["form"]))
        cache.put(
            "sim",
            DomainSimilarityEntry(
                matches=[DomainSimilarityResult(similar_to="ex.com", similarity_percent=0.8)]
            ),
        )

        reloaded = VerdictCache(MemoryStorage(storage.data))
        assert reloaded.get("s", SimpleResult).result == "Safe"
        assert reloaded.get("d_detailed", DetailedResult).screenshot_url == "x.png"
        assert reloaded.get("dyn", DynamicAnalysisResult).result == ["form"]
        matches = reloaded.get("sim", DomainSimilarityEntry).matches
        assert matches[0].similar_to == "ex.com"

    def test_detailed_entry_persisted_with_wire_alias(self, cache, storage) -> None:
        cache.put("u_detailed", DetailedResult(screenshot_url="x.png"))
        assert storage.data["u_detailed"] == {"kind": "detailed", "screenshot url": "x.png"}


# ------------------------------------------------------------------ #
# Loading
# ------------------------------------------------------------------ #


class TestLoad:
    def test_missing_file_gives_empty_cache(self, tmp_path: Path) -> None:
        cache = VerdictCache(JsonFileStorage(tmp_path / "nope.json"))
        assert len(cache) == 0

    def test_corrupt_file_gives_empty_cache(self, tmp_path: Path, caplog) -> None:
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")
        errors: list[CacheError] = []

        with caplog.at_level(logging.WARNING, logger="linkshield"):
            cache = VerdictCache(JsonFileStorage(path), on_error=errors.append)

        assert len(cache) == 0
        assert "Error loading verdict cache" in caplog.text
        assert len(errors) == 1
        assert errors[0].operation == "load"
        assert isinstance(errors[0].__cause__, json.JSONDecodeError)

    def test_non_object_file_gives_empty_cache(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        cache = VerdictCache(JsonFileStorage(path))
        assert len(cache) == 0

    def test_load_failure_is_not_retried(self) -> None:
        storage = BrokenStorage(fail_load=True)
        cache = VerdictCache(storage)
        storage.fail_load = False
        cache.put("a", SimpleResult(result="Safe"))
        # Only the new entry is flushed; nothing was reloaded.
        assert storage.saved == [{"a": {"kind": "simple", "result": "Safe"}}]

    def test_legacy_untagged_snapshot(self) -> None:
        """Raw response bodies without a kind are inferred from the key pattern."""
        legacy = {
            "https://example.com": {"result": "Likely safe"},
            "https://example.com_detailed": {"result": "Safe", "screenshot url": "s.png", "tag": "ok"},
            "https://api.vladhog.ru/security/dynamic_analysis/aHR0cHM6Ly9leGFtcGxlLmNvbQ==": {
                "response": "200",
                "result": "Safe",
            },
            "https://api.vladhog.ru/security/domain_similarity/example.com": [
                {"similar_to": "examp1e.com", "similarity_percent": 0.9}
            ],
        }
        cache = VerdictCache(MemoryStorage(legacy))

        assert len(cache) == 4
        assert cache.get("https://example.com", SimpleResult).result == "Likely safe"
        detailed = cache.get("https://example.com_detailed", DetailedResult)
        assert detailed.screenshot_url == "s.png"
        assert cache.get(
            "https://api.vladhog.ru/security/dynamic_analysis/aHR0cHM6Ly9leGFtcGxlLmNvbQ==",
            DynamicAnalysisResult,
        ).response == "200"
        similar = cache.get(
            "https://api.vladhog.ru/security/domain_similarity/example.com",
            DomainSimilarityEntry,
        )
        assert similar.matches[0].similarity_percent == 0.9

    def test_legacy_kind_follows_key_not_fields(self) -> None:
        legacy = {
            "https://example.com": {"result": "Safe", "response": "200"},
            "https://api.vladhog.ru/security/domain_similarity/nope.example": {
                "response": "404",
            },
        }
        cache = VerdictCache(MemoryStorage(legacy))

        assert cache.get("https://example.com", SimpleResult).result == "Safe"
        similar = cache.get(
            "https://api.vladhog.ru/security/domain_similarity/nope.example",
            DomainSimilarityEntry,
        )
        assert similar.matches == []

    def test_invalid_entries_dropped_individually(self, caplog) -> None:
        snapshot = {
            "good": {"kind": "simple", "result": "Safe"},
            "bad-kind": {"kind": "nonsense"},
            "bad-value": "just a string",
            "bad-list": [{"similar_to": "x.com"}],
        }
        with caplog.at_level(logging.WARNING, logger="linkshield"):
            cache = VerdictCache(MemoryStorage(snapshot))

        assert cache.keys() == ["good"]
        assert "Dropping unreadable cache entry bad-kind" in caplog.text


# ------------------------------------------------------------------ #
# Saving
# ------------------------------------------------------------------ #


class TestSave:
    def test_save_failure_keeps_entry_in_memory(self, caplog) -> None:
        errors: list[CacheError] = []
        cache = VerdictCache(BrokenStorage(fail_save=True), on_error=errors.append)

        with caplog.at_level(logging.WARNING, logger="linkshield"):
            cache.put("a", SimpleResult(result="Safe"))

        assert cache.get("a", SimpleResult).result == "Safe"
        assert "Error saving verdict cache" in caplog.text
        assert [e.operation for e in errors] == ["save"]
        assert isinstance(errors[0].__cause__, OSError)

    def test_flush_reports_success(self, cache: VerdictCache) -> None:
        assert cache.flush() is True
        assert VerdictCache(BrokenStorage(fail_save=True)).flush() is False

    def test_next_successful_save_catches_up(self) -> None:
        storage = BrokenStorage(fail_save=True)
        cache = VerdictCache(storage)
        cache.put("a", SimpleResult(result="Safe"))
        storage.fail_save = False
        cache.put("b", SimpleResult(result="Safe"))
        assert set(storage.saved[-1]) == {"a", "b"}

    def test_callback_errors_propagate(self) -> None:
        def _boom(error: CacheError) -> None:
            raise RuntimeError("callback failed")

        cache = VerdictCache(BrokenStorage(fail_save=True), on_error=_boom)
        with pytest.raises(RuntimeError):
            cache.put("a", SimpleResult(result="Safe"))

    def test_puts_from_threads_all_saved(self, cache: VerdictCache, storage: MemoryStorage) -> None:
        keys = [f"https://site{i}.example" for i in range(20)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda k: cache.put(k, SimpleResult(result="Safe")), keys))
        assert sorted(storage.data) == sorted(keys)
        assert storage.save_count == len(keys)


# ------------------------------------------------------------------ #
# Clear and stats
# ------------------------------------------------------------------ #


class TestClearAndStats:
    def test_clear_empties_and_flushes(self, cache: VerdictCache, storage: MemoryStorage) -> None:
        cache.put("a", SimpleResult(result="Safe"))
        cache.clear()
        assert len(cache) == 0
        assert storage.data == {}

    def test_stats(self, cache: VerdictCache) -> None:
        cache.put("a", SimpleResult(result="Safe"))
        cache.put("b", SimpleResult(result="Safe"))
        cache.put("c_detailed", DetailedResult())
        assert cache.stats() == {
            "size": 3,
            "kinds": {"detailed": 1, "simple": 2},
            "backend": "MemoryStorage",
            "location": None,
        }

    def test_stats_json_file_location(self, tmp_path: Path) -> None:
        cache = VerdictCache(JsonFileStorage(tmp_path / "cache.json"))
        assert cache.stats()["location"] == str(tmp_path / "cache.json")
