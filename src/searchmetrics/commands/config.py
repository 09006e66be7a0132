"""Config commands -- view and modify global configuration.

Provides the ``searchmetrics config`` sub-command group for reading and
updating :class:`~searchmetrics.models.GlobalConfig` (the default profile
and whether a lone profile is picked automatically).
"""

from __future__ import annotations

import typer

from searchmetrics.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the config directory and the current global configuration."""
    from searchmetrics.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'default_profile'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field. ``none`` clears
    an optional field.

    Example::

        searchmetrics config set default_profile prod
        searchmetrics config set auto_select_single_profile false
    """
    from searchmetrics.config import load_global_config, save_global_config
    from searchmetrics.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")
    if key not in data:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    current = data[key]
    if isinstance(current, bool):
        coerced: object = value.lower() in ("true", "1", "yes")
    elif value.lower() == "none":
        coerced = None
    else:
        coerced = value
    data[key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")
