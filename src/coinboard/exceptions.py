"""Exception hierarchy for coinboard.

All exceptions inherit from :class:`CoinboardError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`coinboard.exit_codes`.
The top-level error handler in :func:`coinboard.app.main` catches
``CoinboardError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    CoinboardError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- ConfigError              (exit 1)
    +-- CacheError               (exit 8)
    |   +-- EncodingError
    |   +-- StorageError
    +-- FetchError               (exit 6)
        +-- BadRequestError      (exit 2)
        +-- HTTPStatusError      (exit 4 for 404, else 5)
        +-- DecodeError          (exit 7)
        +-- NoConnectivityError  (exit 6)
        +-- TimeoutError_        (exit 6)
        +-- EmptyResponseError   (exit 5)
        +-- OtherFetchError      (exit 6)

The cache-first repository treats every :class:`FetchError` the same way:
it is re-raised to the caller untouched and never cached.
"""

from __future__ import annotations

from typing import Optional

from coinboard.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class CoinboardError(Exception):
    """Base exception for all coinboard errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`coinboard.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CoinboardError):
    """Raised for invalid CLI arguments or out-of-range request parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(CoinboardError):
    """Raised for configuration problems (invalid JSON, unresolvable credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


# --- Cache errors ---


class CacheError(CoinboardError):
    """Base class for failures of the local expiring store."""

    exit_code = EXIT_CACHE_ERROR


class EncodingError(CacheError):
    """Raised by :meth:`~coinboard.cache.ExpiringStore.put` when a value cannot be serialised.

    This is a programmer error: well-typed domain values always encode.
    """


class StorageError(CacheError):
    """Raised when the disk layer refuses a write (disk full, read-only directory)."""


# --- Fetch errors ---


class FetchError(CoinboardError):
    """Base class for every failure a fetch function can raise.

    Subclasses carry a :attr:`user_message` suitable for display in a view,
    while ``str(exc)`` keeps the technical detail.
    """

    exit_code = EXIT_CONNECTION_ERROR
    user_message: str = "Something went wrong while loading data."


class BadRequestError(FetchError):
    """Raised when the request URL or parameters cannot form a valid request."""

    exit_code = EXIT_INVALID_USAGE
    user_message = "The request was invalid. Please check the coin id and options."


class HTTPStatusError(FetchError):
    """Raised when the API answers with a non-2xx status code.

    Args:
        status_code: The HTTP status returned by the server.
        message: Optional detail extracted from the response body.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        detail = f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}"
        super().__init__(
            detail,
            exit_code=EXIT_NOT_FOUND if status_code == 404 else None,
        )

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self.status_code == 429:
            return "Too many requests (429). Please wait a moment and try again."
        return f"Invalid response from server (status code {self.status_code})."


class DecodeError(FetchError):
    """Raised when a response body cannot be decoded into the expected model."""

    exit_code = EXIT_DECODE_ERROR
    user_message = "Failed to read the data returned by the server."


class NoConnectivityError(FetchError):
    """Raised on DNS failures, refused connections, and other network errors."""

    exit_code = EXIT_CONNECTION_ERROR
    user_message = "No internet connection. Please check your network and try again."


class TimeoutError_(FetchError):
    """Raised when the request did not complete within the configured timeout.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_CONNECTION_ERROR
    user_message = "The request timed out. Please try again."


class EmptyResponseError(FetchError):
    """Raised when a successful response carries no body."""

    exit_code = EXIT_SERVER_ERROR
    user_message = "The server returned no data."


class OtherFetchError(FetchError):
    """Wraps any transport failure that fits none of the other variants.

    Args:
        message: Human-readable description.
        cause: The underlying exception, also chained via ``raise ... from``.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"Unexpected network error: {self}"
