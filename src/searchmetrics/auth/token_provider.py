"""OAuth2 Client Credentials token acquisition and caching.

This module provides :class:`TokenProvider`, which performs the
non-interactive Client Credentials grant (:rfc:`6749` section 4.4) against
the Searchmetrics token endpoint, exchanging the configured API key and
secret for a bearer token.

Tokens are cached in memory with expiry tracking and a 30-second safety
margin so that a token is never presented after it expires mid-flight.
The cache is guarded by a lock; concurrent callers that find the token
expired wait for a single refresh instead of each starting their own.

See Also:
    :class:`searchmetrics.client.transport.BearerTokenAuth` for how the
    token is attached to outgoing requests.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

import httpx

from searchmetrics.exceptions import AuthError, NetworkError
from searchmetrics.models import AccessToken, ConnectionConfig, RequestConfig

TOKEN_EXPIRY_MARGIN = 30.0
"""Seconds subtracted from ``expires_in`` before a token is considered stale."""

DEFAULT_EXPIRES_IN = 3600.0
"""Lifetime assumed when the token response carries no ``expires_in``."""


class TokenProvider:
    """Fetch and cache a client-credentials access token.

    The provider holds at most one :class:`~searchmetrics.models.AccessToken`.
    :meth:`get_token` returns it while it is fresh and transparently replaces
    it with a new one once ``clock()`` reaches its ``expires_at``.

    Args:
        config: Connection settings; the key and secret are sent as
            ``client_id`` and ``client_secret``.
        http_client: Unauthenticated client used for the token request.
            When omitted, the provider creates and owns one built from
            *request_config*.
        request_config: Timeout and SSL settings for an owned client.
        clock: Monotonic time source, injectable for tests.
        margin: Safety margin in seconds (default
            :data:`TOKEN_EXPIRY_MARGIN`).

    Example::

        provider = TokenProvider(config)
        token = provider.get_token()   # network call
        token = provider.get_token()   # cached
    """

    def __init__(
        self,
        config: ConnectionConfig,
        http_client: Optional[httpx.Client] = None,
        request_config: Optional[RequestConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        margin: float = TOKEN_EXPIRY_MARGIN,
    ) -> None:
        self._config = config
        self._clock = clock
        self._margin = margin
        self._owns_client = http_client is None
        if http_client is None:
            settings = request_config or RequestConfig()
            http_client = httpx.Client(
                timeout=settings.timeout,
                verify=settings.verify_ssl,
            )
        self._client = http_client
        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()

    @property
    def token(self) -> Optional[AccessToken]:
        """The cached token, or ``None`` before the first fetch. Never hits the network."""
        return self._token

    def get_token(self) -> AccessToken:
        """Return a token that is valid right now.

        Returns:
            The cached :class:`~searchmetrics.models.AccessToken` when it
            has not expired, otherwise a freshly fetched one.

        Raises:
            AuthError: If the token endpoint rejects the credentials or
                answers with something that is not a token.
            NetworkError: If the token endpoint cannot be reached.
        """
        with self._lock:
            token = self._token
            if token is not None and not token.is_expired(self._clock()):
                return token
            token = self._fetch_token()
            self._token = token
            return token

    def invalidate(self) -> None:
        """Drop the cached token so the next :meth:`get_token` refreshes."""
        with self._lock:
            self._token = None

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            self._client.close()

    def _fetch_token(self) -> AccessToken:
        """POST the client credentials to the token endpoint and build a token."""
        url = self._config.token_url
        data = {
            "grant_type": "client_credentials",
            "client_id": self._config.api_key,
            "client_secret": self._config.api_secret,
        }
        issued_at = self._clock()

        try:
            response = self._client.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Token request to {url} failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise AuthError(f"Token request failed: {exc}") from exc

        if not response.is_success:
            raise AuthError(
                f"Token request failed with status {response.status_code}: "
                f"{response.text}"
            )

        try:
            token_data: Any = response.json()
        except ValueError as exc:
            raise AuthError(f"Token response is not valid JSON: {exc}") from exc

        if not isinstance(token_data, dict):
            raise AuthError("Token response is not a JSON object")

        access_token = token_data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthError("Token response missing 'access_token' field")

        expires_in = token_data.get("expires_in")
        if expires_in is None:
            lifetime = DEFAULT_EXPIRES_IN
        else:
            try:
                lifetime = float(expires_in)
            except (TypeError, ValueError) as exc:
                raise AuthError(f"Invalid 'expires_in' in token response: {expires_in!r}") from exc

        return AccessToken(
            value=access_token,
            expires_at=issued_at + max(lifetime - self._margin, 0.0),
        )
