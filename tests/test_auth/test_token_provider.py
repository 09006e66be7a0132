"""Tests for the client-credentials TokenProvider."""

from __future__ import annotations

import threading
import time
from urllib.parse import parse_qs

import httpx
import pytest

from searchmetrics.auth import DEFAULT_EXPIRES_IN, TOKEN_EXPIRY_MARGIN, TokenProvider
from searchmetrics.exceptions import AuthError, NetworkError
from searchmetrics.models import ConnectionConfig

from conftest import TOKEN_URL, FakeApi, FakeClock


def _make_provider(
    config: ConnectionConfig,
    fake_api: FakeApi,
    clock: FakeClock,
) -> TokenProvider:
    return TokenProvider(
        config,
        http_client=httpx.Client(transport=fake_api.transport),
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Token exchange
# ---------------------------------------------------------------------------


class TestTokenExchange:
    def test_posts_client_credentials_to_token_url(
        self, connection_config, fake_api, clock
    ) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        token = provider.get_token()

        assert token.value == "token-1"
        assert len(fake_api.token_requests) == 1
        request = fake_api.token_requests[0]
        assert request.method == "POST"
        assert str(request.url) == TOKEN_URL
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {
            "grant_type": ["client_credentials"],
            "client_id": ["test-key"],
            "client_secret": ["test-secret"],
        }

    def test_expiry_has_safety_margin(self, connection_config, fake_api, clock) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        token = provider.get_token()
        assert token.expires_at == clock.now + 3600 - TOKEN_EXPIRY_MARGIN

    def test_missing_expires_in_defaults_to_one_hour(
        self, connection_config, fake_api, clock
    ) -> None:
        fake_api.token_response = lambda n: httpx.Response(200, json={"access_token": "abc"})
        provider = _make_provider(connection_config, fake_api, clock)
        token = provider.get_token()
        assert token.expires_at == clock.now + DEFAULT_EXPIRES_IN - TOKEN_EXPIRY_MARGIN

    def test_string_expires_in_is_accepted(self, connection_config, fake_api, clock) -> None:
        fake_api.expires_in = "120"
        provider = _make_provider(connection_config, fake_api, clock)
        assert provider.get_token().expires_at == clock.now + 120 - TOKEN_EXPIRY_MARGIN

    def test_lifetime_shorter_than_margin_is_not_negative(
        self, connection_config, fake_api, clock
    ) -> None:
        fake_api.expires_in = 10
        provider = _make_provider(connection_config, fake_api, clock)
        assert provider.get_token().expires_at == clock.now

    def test_token_property_does_not_fetch(self, connection_config, fake_api, clock) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        assert provider.token is None
        assert fake_api.token_requests == []
        token = provider.get_token()
        assert provider.token == token


# ---------------------------------------------------------------------------
# Caching and refresh
# ---------------------------------------------------------------------------


class TestTokenCaching:
    def test_second_call_uses_cache(self, connection_config, fake_api, clock) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        first = provider.get_token()
        second = provider.get_token()
        assert first is second
        assert len(fake_api.token_requests) == 1

    def test_cached_until_margin_boundary_then_one_refresh(
        self, connection_config, fake_api, clock
    ) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        start = clock.now
        assert provider.get_token().value == "token-1"

        for offset in (1, 600, 3000, 3600 - TOKEN_EXPIRY_MARGIN - 0.001):
            clock.now = start + offset
            assert provider.get_token().value == "token-1"
        assert len(fake_api.token_requests) == 1

        clock.now = start + 3600 - TOKEN_EXPIRY_MARGIN
        assert provider.get_token().value == "token-2"
        assert provider.get_token().value == "token-2"
        assert len(fake_api.token_requests) == 2

    def test_invalidate_forces_refresh(self, connection_config, fake_api, clock) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        provider.get_token()
        provider.invalidate()
        assert provider.token is None
        assert provider.get_token().value == "token-2"

    def test_concurrent_callers_share_one_refresh(
        self, connection_config, fake_api, clock
    ) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        provider.get_token()
        clock.advance(3600)

        default_response = fake_api.token_response

        def slow_token_response(number: int) -> httpx.Response:
            time.sleep(0.05)
            return default_response(number)

        fake_api.token_response = slow_token_response

        barrier = threading.Barrier(8)
        results: list[str] = []
        errors: list[Exception] = []

        def worker() -> None:
            barrier.wait()
            try:
                results.append(provider.get_token().value)
            except Exception as exc:  # pragma: no cover - surfaced by assertion below
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert results == ["token-2"] * 8
        assert len(fake_api.token_requests) == 2
        assert provider.token is not None
        assert provider.token.value == "token-2"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestTokenFailures:
    def test_rejected_credentials_raise_auth_error(
        self, connection_config, fake_api, clock
    ) -> None:
        fake_api.token_response = lambda n: httpx.Response(
            401, json={"error": "invalid_client"}
        )
        provider = _make_provider(connection_config, fake_api, clock)
        with pytest.raises(AuthError, match="401.*invalid_client"):
            provider.get_token()
        assert provider.token is None

    def test_malformed_json_raises_auth_error(self, connection_config, fake_api, clock) -> None:
        fake_api.token_response = lambda n: httpx.Response(200, text="<html>oops</html>")
        provider = _make_provider(connection_config, fake_api, clock)
        with pytest.raises(AuthError, match="not valid JSON"):
            provider.get_token()

    def test_non_object_json_raises_auth_error(self, connection_config, fake_api, clock) -> None:
        fake_api.token_response = lambda n: httpx.Response(200, json=["abc"])
        provider = _make_provider(connection_config, fake_api, clock)
        with pytest.raises(AuthError, match="not a JSON object"):
            provider.get_token()

    @pytest.mark.parametrize("payload", [{}, {"access_token": ""}, {"access_token": 42}])
    def test_missing_access_token_raises_auth_error(
        self, connection_config, fake_api, clock, payload
    ) -> None:
        fake_api.token_response = lambda n: httpx.Response(200, json=payload)
        provider = _make_provider(connection_config, fake_api, clock)
        with pytest.raises(AuthError, match="access_token"):
            provider.get_token()

    def test_invalid_expires_in_raises_auth_error(
        self, connection_config, fake_api, clock
    ) -> None:
        fake_api.expires_in = "soon"
        provider = _make_provider(connection_config, fake_api, clock)
        with pytest.raises(AuthError, match="expires_in"):
            provider.get_token()

    def test_unreachable_endpoint_raises_network_error(self, connection_config, clock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = TokenProvider(
            connection_config,
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
            clock=clock,
        )
        with pytest.raises(NetworkError, match="connection refused"):
            provider.get_token()

    def test_failed_refresh_never_returns_expired_token(
        self, connection_config, fake_api, clock
    ) -> None:
        provider = _make_provider(connection_config, fake_api, clock)
        provider.get_token()
        clock.advance(3600)
        fake_api.token_response = lambda n: httpx.Response(500, text="down")
        with pytest.raises(AuthError):
            provider.get_token()
        with pytest.raises(AuthError):
            provider.get_token()
        assert len(fake_api.token_requests) == 3


# ---------------------------------------------------------------------------
# Client ownership
# ---------------------------------------------------------------------------


class TestClientOwnership:
    def test_owned_client_is_closed(self, connection_config) -> None:
        provider = TokenProvider(connection_config)
        provider.close()
        assert provider._client.is_closed

    def test_borrowed_client_is_left_open(self, connection_config, fake_api) -> None:
        client = httpx.Client(transport=fake_api.transport)
        provider = TokenProvider(connection_config, http_client=client)
        provider.close()
        assert not client.is_closed
        client.close()
