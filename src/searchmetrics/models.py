"""Canonical Pydantic models shared across all searchmetrics modules.

The models fall into two groups:

**Runtime models** -- built in memory and handed to the client:
    :class:`ConnectionConfig`, :class:`AccessToken`, and
    :class:`RequestConfig`.

**Configuration models** -- serialised as JSON in the user's config
directory and turned into runtime models by :mod:`searchmetrics.config`:
    :class:`Profile` and :class:`GlobalConfig`.

Runtime models are frozen; an :class:`AccessToken` is replaced wholesale on
refresh and never mutated.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)

from searchmetrics.exceptions import ConfigError

DEFAULT_API_BASE_URL = "https://api.searchmetrics.com"
DEFAULT_API_VERSION = "v4"


# --- Runtime models ---


class ConnectionConfig(BaseModel):
    """Where the API lives and which client credentials to present.

    All four fields are required and must be non-blank. Both the constructor
    and ``model_validate`` fail with
    :class:`~searchmetrics.exceptions.ConfigError` otherwise, so a connection
    can never be built from a half-filled config.

    Example::

        config = ConnectionConfig(
            api_base_url="https://api.searchmetrics.com/",
            api_version="v4",
            api_key="key",
            api_secret="secret",
        )
        assert config.full_api_url == "https://api.searchmetrics.com/v4"
    """

    model_config = ConfigDict(frozen=True)

    api_base_url: str
    api_version: str
    api_key: str
    api_secret: str = Field(repr=False)

    @model_validator(mode="wrap")
    @classmethod
    def _raise_config_error(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid connection config: {exc}") from exc

    @field_validator("api_base_url", "api_version", "api_key", "api_secret")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def full_api_url(self) -> str:
        """Base URL and API version joined by exactly one slash."""
        return f"{self.api_base_url.rstrip('/')}/{self.api_version.strip('/')}"

    @property
    def token_url(self) -> str:
        """The client-credentials token endpoint under :attr:`full_api_url`."""
        return f"{self.full_api_url}/token"


class AccessToken(BaseModel):
    """A bearer token together with the moment it stops being usable.

    ``expires_at`` is on the same clock as the owning
    :class:`~searchmetrics.auth.TokenProvider` (``time.monotonic`` by
    default) and already has the safety margin subtracted.
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(repr=False)
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class RequestConfig(BaseModel):
    """HTTP settings applied to both the token and the API requests."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


# --- Configuration models ---


class Profile(BaseModel):
    """A named connection target stored under the ``profiles/`` config directory.

    Credentials are never stored directly; ``api_key_source`` and
    ``api_secret_source`` are descriptors resolved at runtime by
    :func:`~searchmetrics.config.resolve_credential` (``env:VAR``,
    ``file:/path``, or ``prompt``).

    See Also:
        :func:`~searchmetrics.config.load_profile`: Deserialise a profile by name.
        :func:`~searchmetrics.config.build_connection_config`: Turn a profile
            into a :class:`ConnectionConfig`.
    """

    name: str
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL)
    api_version: str = Field(default=DEFAULT_API_VERSION)
    api_key_source: str = Field(
        default="env:SEARCHMETRICS_API_KEY",
        description="Credential source: env:VAR, file:/path, or prompt",
    )
    api_secret_source: str = Field(
        default="env:SEARCHMETRICS_API_SECRET",
        description="Credential source: env:VAR, file:/path, or prompt",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/searchmetrics/config.json``."""

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
