"""Request commands -- call API endpoints from the shell.

Provides the top-level ``searchmetrics get``, ``searchmetrics post`` and
``searchmetrics token`` commands. Each one resolves the active profile via
:func:`~searchmetrics.config.load_connection`, opens an
:class:`~searchmetrics.client.ApiConnection`, and prints the decoded JSON
to stdout.

Typical workflow::

    searchmetrics get ResearchKeywordsGetListRelatedKeywords -P keyword=shoes -P countrycode=us
    searchmetrics post ProjectOrganicGetListRankingsHistoric -d project_id=42 --json
"""

from __future__ import annotations

from typing import Optional

import typer

from searchmetrics.client import ApiConnection
from searchmetrics.exceptions import HttpError, SearchmetricsError
from searchmetrics.exit_codes import EXIT_INVALID_USAGE
from searchmetrics.output import debug, error, format_response, info, success, warning


def parse_pairs(values: Optional[list[str]], option: str) -> dict[str, str]:
    """Turn ``["a=1", "b=2"]`` into ``{"a": "1", "b": "2"}``.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key.
    """
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(
                f"Expected key=value, got: {item!r}", param_hint=option
            )
        pairs[key] = value
    return pairs


def open_connection(ctx: typer.Context) -> ApiConnection:
    """Build an :class:`ApiConnection` for the profile selected on the command line."""
    from searchmetrics.config import load_connection

    profile_name = ctx.obj.get("profile") if ctx.obj else None
    config, request_config = load_connection(profile_name)
    debug(f"Using API at {config.full_api_url}")
    if not request_config.verify_ssl:
        warning("SSL certificate verification is disabled for this profile.")
    return ApiConnection(config, request_config)


def _fail(exc: SearchmetricsError) -> None:
    error(str(exc))
    if isinstance(exc, HttpError) and len(exc.body) > 200:
        debug(f"Full response body: {exc.body}")
    raise typer.Exit(code=exc.exit_code)


def get_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(
        help="Endpoint name, e.g. ResearchKeywordsGetListRelatedKeywords."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter as key=value (repeatable)."
    ),
) -> None:
    """Send a GET request to an endpoint and print the JSON response.

    Example::

        searchmetrics get ResearchKeywordsGetListRelatedKeywords -P keyword=shoes
    """
    params = parse_pairs(param, "--param")
    try:
        with open_connection(ctx) as conn:
            debug(f"GET {conn.endpoint_url(endpoint)} params={params}")
            data = conn.make_get_request(endpoint, params)
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    except SearchmetricsError as exc:
        _fail(exc)
    else:
        format_response(data)


def post_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(help="Endpoint name."),
    data: Optional[list[str]] = typer.Option(
        None, "--data", "-d", help="Form field as key=value (repeatable)."
    ),
) -> None:
    """Send a form-encoded POST request to an endpoint and print the JSON response.

    Example::

        searchmetrics post ProjectOrganicGetListRankingsHistoric -d project_id=42
    """
    body = parse_pairs(data, "--data")
    try:
        with open_connection(ctx) as conn:
            debug(f"POST {conn.endpoint_url(endpoint)} fields={sorted(body)}")
            result = conn.make_post_request(endpoint, body)
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    except SearchmetricsError as exc:
        _fail(exc)
    else:
        format_response(result)


def token_command(ctx: typer.Context) -> None:
    """Fetch an access token to check that the credentials work.

    The token value itself is masked; only its prefix and lifetime are shown.
    """
    import time

    try:
        with open_connection(ctx) as conn:
            info(f"Requesting token from {conn.config.token_url}")
            token = conn.token_provider.get_token()
    except SearchmetricsError as exc:
        _fail(exc)
    else:
        remaining = max(int(token.expires_at - time.monotonic()), 0)
        masked = f"{token.value[:4]}..." if len(token.value) > 8 else "****"
        success(f"Token acquired: {masked} (usable for {remaining}s)")
