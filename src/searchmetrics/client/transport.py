"""Authenticated HTTP transport for the Searchmetrics API.

:class:`HttpTransport` wraps a plain :class:`httpx.Client` with
:class:`BearerTokenAuth`, an :class:`httpx.Auth` flow that asks the
:class:`~searchmetrics.auth.TokenProvider` for a valid token on every
request and sets the ``Authorization`` header.

The transport neither retries nor looks at status codes; it returns the
raw :class:`httpx.Response`. Network failures become
:class:`~searchmetrics.exceptions.NetworkError` and undecodable bodies
become :class:`~searchmetrics.exceptions.DecodeError`, so no httpx
exception reaches the caller.
"""

from __future__ import annotations

from typing import Any, Generator, Mapping, Optional

import httpx

from searchmetrics import __version__
from searchmetrics.auth import TokenProvider
from searchmetrics.exceptions import DecodeError, NetworkError
from searchmetrics.models import RequestConfig

USER_AGENT = f"searchmetrics-python/{__version__}"


class BearerTokenAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` using a :class:`TokenProvider`.

    The token is looked up per request, so an expired token is refreshed
    before it is ever sent.
    """

    def __init__(self, token_provider: TokenProvider) -> None:
        self._token_provider = token_provider

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_provider.get_token()
        request.headers["Authorization"] = f"Bearer {token.value}"
        yield request


class HttpTransport:
    """Reusable HTTP client that authenticates every request.

    Args:
        token_provider: Source of bearer tokens.
        request_config: Timeout and SSL settings. Defaults to
            :class:`~searchmetrics.models.RequestConfig`.
        base_transport: Optional :class:`httpx.BaseTransport` for the
            underlying client (e.g. :class:`httpx.MockTransport` in tests).

    Example::

        transport = HttpTransport(provider)
        response = transport.send("GET", url, params={"keyword": "shoes"})
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        request_config: Optional[RequestConfig] = None,
        base_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        settings = request_config or RequestConfig()
        self._client = httpx.Client(
            auth=BearerTokenAuth(token_provider),
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            transport=base_transport,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    @property
    def client(self) -> httpx.Client:
        """The underlying authenticated :class:`httpx.Client`."""
        return self._client

    def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send one authenticated request and return the raw response.

        Args:
            method: HTTP method (``GET`` or ``POST``).
            url: Absolute request URL.
            params: Query parameters, appended to the URL.
            data: Form fields, sent as an ``application/x-www-form-urlencoded`` body.

        Returns:
            The :class:`httpx.Response`, whatever its status code.

        Raises:
            NetworkError: On DNS, connection, timeout, or other HTTP-level failures.
            DecodeError: If the body cannot be decompressed or decoded.
            AuthError: If a token is needed and cannot be obtained.
        """
        try:
            return self._client.request(
                method,
                url,
                params=dict(params) if params else None,
                data=dict(data) if data else None,
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
        except httpx.DecodingError as exc:
            raise DecodeError(f"Response from {url} could not be decoded: {exc}") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()
