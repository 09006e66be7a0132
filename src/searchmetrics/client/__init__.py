"""HTTP client layer for searchmetrics.

Classes:
    :class:`ApiConnection` -- the facade callers use: builds endpoint
    URLs, sends GET/POST requests, checks status codes, decodes JSON.
    :class:`HttpTransport` -- an :class:`httpx.Client` wrapped with a
    bearer-token auth flow.

Example::

    from searchmetrics.client import ApiConnection

    with ApiConnection(config) as conn:
        data = conn.make_post_request("ProjectOrganicGetListRankingsHistoric", {"project_id": 42})
"""

from searchmetrics.client.connection import ApiConnection
from searchmetrics.client.transport import BearerTokenAuth, HttpTransport

__all__ = ["ApiConnection", "BearerTokenAuth", "HttpTransport"]
