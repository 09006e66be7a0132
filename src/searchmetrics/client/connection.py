"""The :class:`ApiConnection` facade over the Searchmetrics API.

An :class:`ApiConnection` turns an endpoint name such as
``ResearchKeywordsGetListRelatedKeywords`` into
``<full_api_url>/ResearchKeywordsGetListRelatedKeywords.json``, sends the
request through an authenticated
:class:`~searchmetrics.client.transport.HttpTransport`, and returns the
decoded JSON body. Every call is a single request with a single outcome:
anything but HTTP 200 raises :class:`~searchmetrics.exceptions.HttpError`
carrying the status code and the verbatim body.

The token provider and transport are built on first use, so constructing
a connection never touches the network.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Mapping, Optional

import httpx

from searchmetrics.auth import TokenProvider
from searchmetrics.client.transport import HttpTransport
from searchmetrics.exceptions import DecodeError, HttpError
from searchmetrics.models import ConnectionConfig, RequestConfig


class ApiConnection:
    """Authenticated GET/POST access to JSON endpoints.

    Args:
        config: Base URL, API version, key, and secret.
        request_config: Timeout and SSL settings shared by the token and
            API requests.
        base_transport: Optional :class:`httpx.BaseTransport` used by both
            the token client and the API client (tests pass an
            :class:`httpx.MockTransport`).
        clock: Monotonic time source handed to the token provider.

    Example::

        with ApiConnection(config) as conn:
            keywords = conn.make_get_request(
                "ResearchKeywordsGetListRelatedKeywords",
                {"keyword": "shoes", "countrycode": "us"},
            )
    """

    def __init__(
        self,
        config: ConnectionConfig,
        request_config: Optional[RequestConfig] = None,
        base_transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._request_config = request_config or RequestConfig()
        self._base_transport = base_transport
        self._clock = clock
        self._token_provider: Optional[TokenProvider] = None
        self._auth_client: Optional[httpx.Client] = None
        self._transport: Optional[HttpTransport] = None
        self._build_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiConnection:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    @property
    def token_provider(self) -> TokenProvider:
        """The token provider, created on first access."""
        self._ensure_built()
        assert self._token_provider is not None
        return self._token_provider

    @property
    def transport(self) -> HttpTransport:
        """The authenticated transport, created on first access."""
        self._ensure_built()
        assert self._transport is not None
        return self._transport

    @property
    def client(self) -> httpx.Client:
        """The authenticated :class:`httpx.Client` behind this connection.

        Useful for calls the facade does not cover; every request sent
        through it still carries a fresh bearer token.
        """
        return self.transport.client

    def endpoint_url(self, endpoint: str) -> str:
        """Return the full URL for *endpoint*.

        Args:
            endpoint: Endpoint name, e.g. ``ResearchKeywordsGetListRelatedKeywords``.

        Returns:
            ``<full_api_url>/<endpoint>.json``.

        Raises:
            ValueError: If *endpoint* is empty.
        """
        name = endpoint.strip().lstrip("/")
        if not name:
            raise ValueError("Endpoint name must not be empty")
        return f"{self._config.full_api_url}/{name}.json"

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def make_get_request(
        self,
        endpoint: str,
        query_params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send a GET request and return the decoded JSON body.

        Args:
            endpoint: Endpoint name.
            query_params: Query-string parameters.

        Returns:
            The decoded JSON value (``dict``, ``list``, or scalar).

        Raises:
            HttpError: If the status code is not 200.
            DecodeError: If the body is not valid JSON.
            AuthError: If no token could be obtained.
            NetworkError: On transport failures.
        """
        return self._request("GET", endpoint, params=query_params)

    def make_post_request(
        self,
        endpoint: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send a form-encoded POST request and return the decoded JSON body.

        Args:
            endpoint: Endpoint name.
            body: Form fields sent as the request body.

        Returns:
            The decoded JSON value.

        Raises:
            HttpError: If the status code is not 200.
            DecodeError: If the body is not valid JSON.
            AuthError: If no token could be obtained.
            NetworkError: On transport failures.
        """
        return self._request("POST", endpoint, data=body)

    def close(self) -> None:
        """Close the API and token clients, if they were created."""
        with self._build_lock:
            if self._transport is not None:
                self._transport.close()
                self._transport = None
            if self._auth_client is not None:
                self._auth_client.close()
                self._auth_client = None
            self._token_provider = None

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_built(self) -> None:
        with self._build_lock:
            if self._transport is not None:
                return
            settings = self._request_config
            self._auth_client = httpx.Client(
                timeout=settings.timeout,
                verify=settings.verify_ssl,
                transport=self._base_transport,
            )
            self._token_provider = TokenProvider(
                self._config,
                http_client=self._auth_client,
                clock=self._clock,
            )
            self._transport = HttpTransport(
                self._token_provider,
                request_config=settings,
                base_transport=self._base_transport,
            )

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        url = self.endpoint_url(endpoint)
        response = self.transport.send(method, url, params=params, data=data)
        self._check_status_code(response)
        return self._decode(response)

    @staticmethod
    def _check_status_code(response: httpx.Response) -> int:
        """Raise :class:`HttpError` unless *response* is a 200."""
        status_code = response.status_code
        if status_code != httpx.codes.OK:
            raise HttpError(status_code, response.text)
        return status_code

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(
                f"Response from {response.request.url} is not valid JSON: {exc}",
                body=response.text,
            ) from exc
