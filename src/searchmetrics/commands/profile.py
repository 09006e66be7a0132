"""Profile commands -- manage stored connection profiles.

Provides the ``searchmetrics profile`` sub-command group. A profile names
an API base URL and version together with *sources* for the API key and
secret; the secrets themselves are never written to disk.

Typical workflow::

    searchmetrics profile add prod --key-source env:SM_KEY --secret-source file:~/.sm_secret --default
    searchmetrics profile list
    searchmetrics token --profile prod
"""

from __future__ import annotations

import typer

from searchmetrics.exceptions import ConfigError
from searchmetrics.models import DEFAULT_API_BASE_URL, DEFAULT_API_VERSION
from searchmetrics.output import error, format_response, print_table, success, suggest


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(DEFAULT_API_BASE_URL, "--base-url", help="API base URL."),
    api_version: str = typer.Option(DEFAULT_API_VERSION, "--api-version", help="API version segment."),
    key_source: str = typer.Option(
        "env:SEARCHMETRICS_API_KEY", "--key-source", help="API key source (env:VAR, file:/path, prompt)."
    ),
    secret_source: str = typer.Option(
        "env:SEARCHMETRICS_API_SECRET",
        "--secret-source",
        help="API secret source (env:VAR, file:/path, prompt).",
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="Request timeout in seconds."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip SSL certificate verification."),
    make_default: bool = typer.Option(False, "--default", help="Make this the default profile."),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing profile."),
) -> None:
    """Create (or replace) a connection profile.

    Example::

        searchmetrics profile add staging --base-url https://staging.example.com --default
    """
    from searchmetrics.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from searchmetrics.models import Profile, RequestConfig

    try:
        exists = profile_exists(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    if exists and not overwrite:
        error(f"Profile '{name}' already exists.")
        suggest("Pass --overwrite to replace it.")
        raise typer.Exit(code=2)

    profile = Profile(
        name=name,
        api_base_url=base_url,
        api_version=api_version,
        api_key_source=key_source,
        api_secret_source=secret_source,
        request=RequestConfig(timeout=timeout, verify_ssl=not insecure),
    )
    save_profile(profile)

    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)

    success(f'Profile "{name}" saved.')
    suggest(f"Check the credentials: searchmetrics --profile {name} token")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles, marking the default one."""
    from searchmetrics.config import list_profiles, load_global_config, load_profile

    default = load_global_config().default_profile
    rows: list[list[str]] = []
    for name in list_profiles():
        profile = load_profile(name)
        rows.append([
            name,
            f"{profile.api_base_url.rstrip('/')}/{profile.api_version.strip('/')}",
            "yes" if name == default else "",
        ])
    print_table(["Name", "API URL", "Default"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a profile's stored settings (credential sources, not credentials)."""
    from searchmetrics.config import load_profile

    try:
        profile = load_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    format_response(profile.model_dump(mode="json"))


@profile_app.command("remove")
def profile_remove(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a profile, clearing it as default if needed."""
    from searchmetrics.config import delete_profile, load_global_config, save_global_config

    try:
        delete_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f'Profile "{name}" removed.')
