"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module turns what the user has configured into the runtime
:class:`~searchmetrics.models.ConnectionConfig` the client needs:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.searchmetrics/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- a single :class:`~searchmetrics.models.GlobalConfig`
  JSON file holding the default profile.
* **Profiles** -- one JSON file per API target, each deserialised into a
  :class:`~searchmetrics.models.Profile`.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or an interactive prompt.
* **Precedence resolution** -- :func:`resolve_profile` and
  :func:`load_connection` pick the active profile and apply
  ``SEARCHMETRICS_*`` environment overrides.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from searchmetrics.exceptions import ConfigError
from searchmetrics.models import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_VERSION,
    ConnectionConfig,
    GlobalConfig,
    Profile,
    RequestConfig,
)

_APP_NAME = "searchmetrics"
_CONFIG_FILENAME = "config.json"

ENV_PROFILE = "SEARCHMETRICS_PROFILE"
ENV_API_BASE_URL = "SEARCHMETRICS_API_BASE_URL"
ENV_API_VERSION = "SEARCHMETRICS_API_VERSION"
ENV_API_KEY = "SEARCHMETRICS_API_KEY"
ENV_API_SECRET = "SEARCHMETRICS_API_SECRET"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/searchmetrics/`` (default
    ``~/.config/searchmetrics/``). On macOS/Windows: ``~/.searchmetrics/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/searchmetrics/`` (default
    ``~/.local/share/searchmetrics/``). On macOS/Windows:
    ``~/.searchmetrics/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and the original file is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration.

    Returns:
        The deserialised :class:`~searchmetrics.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    """Return the JSON file for profile *name*.

    Raises:
        ConfigError: If *name* is empty, hidden, or contains a path separator.
    """
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise ConfigError(f"Invalid profile name: {name!r}")
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load and validate a profile from disk.

    Args:
        name: Profile name (``<name>.json`` in the profiles directory).

    Raises:
        ConfigError: If the profile does not exist, contains invalid JSON,
            or fails validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Profile.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: Profile) -> None:
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def delete_profile(name: str) -> None:
    """Delete a profile's JSON file.

    Raises:
        ConfigError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts the user (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def resolve_profile(cli_profile: Optional[str] = None) -> Optional[Profile]:
    """Pick the active profile.

    Precedence (high to low):
        1. ``cli_profile``
        2. ``SEARCHMETRICS_PROFILE``
        3. ``default_profile`` from the global config
        4. The only stored profile, when ``auto_select_single_profile`` is on

    Returns:
        The loaded :class:`~searchmetrics.models.Profile`, or ``None`` if no
        profile applies.

    Raises:
        ConfigError: If a named profile cannot be loaded.
    """
    global_cfg = load_global_config()

    name: Optional[str] = global_cfg.default_profile
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        name = env_profile
    if cli_profile is not None:
        name = cli_profile

    if name is None and global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            name = profiles[0]

    if name is None:
        return None
    return load_profile(name)


def build_connection_config(profile: Optional[Profile]) -> ConnectionConfig:
    """Build a :class:`~searchmetrics.models.ConnectionConfig`.

    ``SEARCHMETRICS_API_BASE_URL``, ``SEARCHMETRICS_API_VERSION``,
    ``SEARCHMETRICS_API_KEY`` and ``SEARCHMETRICS_API_SECRET`` override the
    profile's values. Without a profile, the base URL and version fall back
    to the public defaults and the key and secret must come from the
    environment.

    Raises:
        ConfigError: If a credential cannot be resolved or a field is empty.
    """
    env = os.environ
    if profile is None:
        base_url = env.get(ENV_API_BASE_URL) or DEFAULT_API_BASE_URL
        version = env.get(ENV_API_VERSION) or DEFAULT_API_VERSION
        key = env.get(ENV_API_KEY)
        secret = env.get(ENV_API_SECRET)
        if not key or not secret:
            raise ConfigError(
                f"No profile configured and {ENV_API_KEY} / {ENV_API_SECRET} are not set"
            )
    else:
        base_url = env.get(ENV_API_BASE_URL) or profile.api_base_url
        version = env.get(ENV_API_VERSION) or profile.api_version
        key = env.get(ENV_API_KEY) or resolve_credential(profile.api_key_source)
        secret = env.get(ENV_API_SECRET) or resolve_credential(profile.api_secret_source)

    return ConnectionConfig(
        api_base_url=base_url,
        api_version=version,
        api_key=key,
        api_secret=secret,
    )


def load_connection(
    cli_profile: Optional[str] = None,
) -> tuple[ConnectionConfig, RequestConfig]:
    """Resolve the active profile and return what an ApiConnection needs.

    Returns:
        A ``(connection_config, request_config)`` tuple.

    Raises:
        ConfigError: On any configuration problem.
    """
    profile = resolve_profile(cli_profile)
    request_config = profile.request if profile is not None else RequestConfig()
    return build_connection_config(profile), request_config
