"""searchmetrics -- OAuth2 client-credentials adapter for the Searchmetrics API.

The package authenticates with the client-credentials grant, keeps the
resulting bearer token until shortly before it expires, and issues GET/POST
requests against ``<base>/<version>/<Endpoint>.json`` endpoints, returning
the decoded JSON or raising a typed error.

Typical usage::

    from searchmetrics import ApiConnection, ConnectionConfig

    config = ConnectionConfig(
        api_base_url="https://api.searchmetrics.com",
        api_version="v4",
        api_key="my-key",
        api_secret="my-secret",
    )
    with ApiConnection(config) as conn:
        data = conn.make_get_request(
            "ResearchKeywordsGetListRelatedKeywords",
            {"keyword": "shoes", "countrycode": "us"},
        )

Modules:
    models: Pydantic models (connection config, tokens, profiles).
    config: XDG-aware profile storage and credential resolution.
    auth: Client-credentials token acquisition and caching.
    client: Authenticated transport and the :class:`ApiConnection` facade.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer command-line interface.
"""

__version__ = "0.1.0"

from searchmetrics.client import ApiConnection, HttpTransport  # noqa: E402
from searchmetrics.auth import TokenProvider  # noqa: E402
from searchmetrics.exceptions import (  # noqa: E402
    AuthError,
    ConfigError,
    DecodeError,
    HttpError,
    NetworkError,
    SearchmetricsError,
)
from searchmetrics.models import AccessToken, ConnectionConfig, RequestConfig  # noqa: E402

__all__ = [
    "AccessToken",
    "ApiConnection",
    "AuthError",
    "ConfigError",
    "ConnectionConfig",
    "DecodeError",
    "HttpError",
    "HttpTransport",
    "NetworkError",
    "RequestConfig",
    "SearchmetricsError",
    "TokenProvider",
]
