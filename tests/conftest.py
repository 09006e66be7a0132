"""Shared test fixtures for searchmetrics.

Provides a fake Searchmetrics API served through :class:`httpx.MockTransport`,
a controllable clock for token-expiry tests, isolated config directories,
and output-state cleanup. These fixtures are discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from searchmetrics.models import ConnectionConfig
from searchmetrics.output import reset_output


BASE_URL = "https://api.example.com"
API_VERSION = "v4"
FULL_API_URL = f"{BASE_URL}/{API_VERSION}"
TOKEN_URL = f"{FULL_API_URL}/token"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; a
    stale manager from a CliRunner invocation would write to closed files.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeClock:
    """A monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeApi:
    """Request handler standing in for the Searchmetrics API.

    Requests to ``.../token`` get a fresh ``token-<n>`` access token;
    everything else is answered by :attr:`api_response`. All requests are
    recorded for later assertions.
    """

    def __init__(self) -> None:
        self.token_requests: list[httpx.Request] = []
        self.api_requests: list[httpx.Request] = []
        self.expires_in: Any = 3600
        self.token_response: Callable[[int], httpx.Response] = self._default_token_response
        self.api_response: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"ok": True})
        )

    def _default_token_response(self, number: int) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "access_token": f"token-{number}",
                "expires_in": self.expires_in,
                "token_type": "Bearer",
            },
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            self.token_requests.append(request)
            return self.token_response(len(self.token_requests))
        self.api_requests.append(request)
        return self.api_response(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        api_base_url=BASE_URL,
        api_version=API_VERSION,
        api_key="test-key",
        api_secret="test-secret",
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, forces the
    XDG layout on every platform, and clears all SEARCHMETRICS_* variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("searchmetrics.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SEARCHMETRICS_PROFILE",
        "SEARCHMETRICS_API_BASE_URL",
        "SEARCHMETRICS_API_VERSION",
        "SEARCHMETRICS_API_KEY",
        "SEARCHMETRICS_API_SECRET",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path
