"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~linkshield.exceptions.LinkShieldError` subclass.
Shell scripts wrapping the ``linkshield`` CLI can inspect the exit code to
tell a network failure from a malformed service response without parsing
stderr.

Example::

    $ linkshield check https://example.com
    $ echo $?
    6   # EXIT_TRANSPORT_ERROR -- the service could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (reported by Typer itself)."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_RESPONSE_PARSE_ERROR = 7
"""The service answered with a body that is not JSON or has an unexpected shape."""

EXIT_CACHE_ERROR = 8
"""The verdict cache could not be read from or written to storage."""
