"""Client-credentials authentication for the Searchmetrics API.

The package exposes :class:`TokenProvider`, which negotiates an OAuth2
client-credentials grant against ``<full_api_url>/token`` and caches the
resulting :class:`~searchmetrics.models.AccessToken` until it is about to
expire.

Typical usage::

    from searchmetrics.auth import TokenProvider

    provider = TokenProvider(config)
    token = provider.get_token()
    headers = {"Authorization": f"Bearer {token.value}"}
"""

from searchmetrics.auth.token_provider import (
    DEFAULT_EXPIRES_IN,
    TOKEN_EXPIRY_MARGIN,
    TokenProvider,
)

__all__ = ["DEFAULT_EXPIRES_IN", "TOKEN_EXPIRY_MARGIN", "TokenProvider"]
