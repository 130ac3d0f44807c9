"""Exception hierarchy for linkshield.

All exceptions inherit from :class:`LinkShieldError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`linkshield.exit_codes`.
The CLI entry point :func:`linkshield.app.main` catches ``LinkShieldError``
and exits with the appropriate code, while unexpected exceptions produce a
crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    LinkShieldError (exit 1)
    +-- TransportError      (exit 6)
    +-- ResponseParseError  (exit 7)
    +-- CacheError          (exit 8)
    +-- ConfigError         (exit 1)

:class:`CacheError` is never raised out of a lookup.  Persistence failures
are logged and handed to the ``on_error`` callback of
:class:`~linkshield.cache.VerdictCache` instead.
"""

from linkshield.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_RESPONSE_PARSE_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class LinkShieldError(Exception):
    """Base exception for all linkshield errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`linkshield.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class TransportError(LinkShieldError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    The underlying :class:`httpx.HTTPError` is chained as ``__cause__``.
    """

    exit_code = EXIT_TRANSPORT_ERROR


class ResponseParseError(LinkShieldError):
    """Raised when a response body is not JSON or does not match the expected shape."""

    exit_code = EXIT_RESPONSE_PARSE_ERROR


class CacheError(LinkShieldError):
    """Wraps a storage failure while loading or saving the verdict cache.

    Args:
        operation: ``"load"`` or ``"save"``.
        message: Human-readable error description.
    """

    exit_code = EXIT_CACHE_ERROR

    def __init__(self, operation: str, message: str):
        super().__init__(f"Cache {operation} failed: {message}")
        self.operation = operation


class ConfigError(LinkShieldError):
    """Raised for configuration problems (missing API key, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
