"""Exception hierarchy for searchmetrics.

All exceptions inherit from :class:`SearchmetricsError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`searchmetrics.exit_codes`. Library callers catch the specific
subclasses; the CLI entry point in :func:`searchmetrics.app.main` catches
``SearchmetricsError`` and exits with the matching code.

Subclass hierarchy::

    SearchmetricsError (exit 1)
    +-- ConfigError     (exit 1)
    +-- AuthError       (exit 3)
    +-- NetworkError    (exit 6)
    +-- HttpError       (exit 3 / 4 / 5 / 1, by status code)
    +-- DecodeError     (exit 1)
"""

from __future__ import annotations

from searchmetrics.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class SearchmetricsError(Exception):
    """Base exception for all searchmetrics errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SearchmetricsError):
    """Raised for configuration problems (empty fields, missing profiles, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(SearchmetricsError):
    """Raised when the client-credentials token exchange fails."""

    exit_code = EXIT_AUTH_FAILURE


class NetworkError(SearchmetricsError):
    """Raised on transport-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class HttpError(SearchmetricsError):
    """Raised when the API answers with any status other than 200.

    The raw response body is kept verbatim in :attr:`body` so callers can
    inspect the API's own error payload.

    Args:
        status_code: The HTTP status code of the response.
        body: The undecoded response body.
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body

        snippet = body[:200] if body else ""
        message = f"HTTP {status_code}: {snippet}" if snippet else f"HTTP {status_code}"

        if status_code in (401, 403):
            exit_code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            exit_code = EXIT_NOT_FOUND
        elif status_code >= 500:
            exit_code = EXIT_SERVER_ERROR
        else:
            exit_code = EXIT_GENERIC_FAILURE
        super().__init__(message, exit_code=exit_code)


class DecodeError(SearchmetricsError):
    """Raised when a 200 response body cannot be decoded as JSON.

    Args:
        message: Description of the decode failure.
        body: The undecoded response body.
    """

    exit_code = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, body: str = ""):
        super().__init__(message)
        self.body = body
