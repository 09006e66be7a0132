"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~searchmetrics.exceptions.SearchmetricsError` subclass.
Shell scripts wrapping the ``searchmetrics`` CLI can inspect the exit code
to tell a rejected credential from an unreachable host without parsing
stderr.

Example::

    $ searchmetrics get ResearchKeywordsGetListRelatedKeywords -q keyword=shoes
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the token endpoint rejected the key/secret
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed."""

EXIT_NOT_FOUND = 4
"""The requested endpoint was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
