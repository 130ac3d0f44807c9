"""Shared test fixtures for linkshield.

Provides a fake LinkShield service built on :class:`httpx.MockTransport`,
client configuration pointing at ``tmp_path``, isolated XDG directories and
output state.  These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from linkshield.models import ClientConfig
from linkshield.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    Typer's CliRunner swaps sys.stdout/sys.stderr during a test; a manager
    created inside it would keep references to closed streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake service
# ---------------------------------------------------------------------------


class FakeService:
    """Routes requests to canned JSON payloads and records every call.

    Routes are matched on ``host + path``; the query string is ignored so
    that tests can assert on it separately through :attr:`requests`.

    Example::

        service = FakeService()
        service.route("api.linkshieldai.com/", {"result": "Safe"})
        transport = service.transport()
    """

    def __init__(self) -> None:
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, host_path: str, payload: Any, status_code: int = 200) -> None:
        self._routes[host_path] = lambda request: httpx.Response(
            status_code, json=payload
        )

    def route_raw(self, host_path: str, content: bytes, status_code: int = 200) -> None:
        self._routes[host_path] = lambda request: httpx.Response(
            status_code, content=content, headers={"content-type": "text/html"}
        )

    def fail(self, host_path: str, exc: Optional[Exception] = None) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc or httpx.ConnectError("connection refused", request=request)

        self._routes[host_path] = _raise

    def calls_to(self, host_path: str) -> int:
        return sum(1 for r in self.requests if f"{r.url.host}{r.url.path}" == host_path)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get(f"{request.url.host}{request.url.path}")
        if handler is None:
            return httpx.Response(404, json={"Error": "no route"})
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def service() -> FakeService:
    """A fresh fake LinkShield/security service."""
    return FakeService()


# ---------------------------------------------------------------------------
# Client configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    return tmp_path / "cache.json"


@pytest.fixture
def client_config(cache_file: Path) -> ClientConfig:
    """Config with a test API key and a cache file inside tmp_path."""
    return ClientConfig(api_key="test-key", cache_file=cache_file)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate XDG directories and LINKSHIELD_* variables to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("linkshield.config._is_xdg_platform", lambda: True)

    for var in ["LINKSHIELD_API_KEY", "LINKSHIELD_CACHE_FILE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
