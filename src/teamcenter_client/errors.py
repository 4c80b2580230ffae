"""Error classification for Teamcenter calls.

Failures raised anywhere below the command layer are wrapped into a
:class:`ClassifiedError` tagged with one :class:`ErrorCategory`. The
category decides which wire-facing error code a command reports; it never
leaves the library itself.

Wrapping is idempotent: every ``handle_*`` function returns an already
classified error unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Internal failure categories."""

    DATA_VALIDATION = "DATA_VALIDATION"
    DATA_PARSING = "DATA_PARSING"
    API_RESPONSE = "API_RESPONSE"
    API_TIMEOUT = "API_TIMEOUT"
    AUTH_SESSION = "AUTH_SESSION"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"


class ClassifiedError(Exception):
    """A failure tagged with an :class:`ErrorCategory`.

    Attributes:
        message: Human-readable description
        category: Classification used to pick a wire error code
        cause: Underlying exception, if any
        context: Optional key/value details (method, service, status, ...)
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        cause: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.cause = cause
        self.context = context

    def __repr__(self) -> str:
        return f"ClassifiedError({self.category.value}: {self.message!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        # args only holds the message; rebuild from every field for copy/pickle
        return (type(self), (self.message, self.category, self.cause, self.context))


class ServerFault(Exception):
    """Error reported by the Teamcenter server.

    Keeps the decoded response body under ``response["data"]`` so the
    server's own error text can be recovered by :func:`extract_error_message`.
    """

    def __init__(self, message: str, status_code: int | None = None, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = {"status": status_code, "data": data}


def _describe(error: object) -> str:
    return str(error) if isinstance(error, BaseException) else repr(error)


def _wrap(
    error: object, context: str, category: ErrorCategory, label: str
) -> ClassifiedError:
    if isinstance(error, ClassifiedError):
        return error
    return ClassifiedError(
        f"{label} in {context}: {_describe(error)}",
        category,
        error if isinstance(error, BaseException) else None,
        {"context": context},
    )


def handle_api_error(error: object, context: str) -> ClassifiedError:
    """Classify a failure as an API response error."""
    return _wrap(error, context, ErrorCategory.API_RESPONSE, "API error")


def handle_data_error(error: object, context: str) -> ClassifiedError:
    """Classify a failure as a data parsing error."""
    return _wrap(error, context, ErrorCategory.DATA_PARSING, "Data error")


def handle_auth_error(error: object, context: str) -> ClassifiedError:
    """Classify a failure as an authentication/session error."""
    return _wrap(error, context, ErrorCategory.AUTH_SESSION, "Authentication error")


def handle_network_error(error: object, context: str) -> ClassifiedError:
    """Classify a failure as a network error."""
    return _wrap(error, context, ErrorCategory.NETWORK, "Network error")


def log_error(
    error: object,
    context: str,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> None:
    """Log a failure with its category."""
    log = log or logger
    if isinstance(error, ClassifiedError):
        log.error(
            f"[{error.category.value}] {error.message}",
            extra={"context": context, "cause": repr(error.cause)},
        )
    elif isinstance(error, BaseException):
        log.error(f"[{ErrorCategory.UNKNOWN.value}] {error}", exc_info=error)
    else:
        log.error(f"[{ErrorCategory.UNKNOWN.value}] Unknown error in {context}: {error!r}")


# =============================================================================
# Server message extraction
# =============================================================================


def _lookup(obj: Any, key: str | int) -> Any:
    """Read a key, index or attribute; None when the shape does not match."""
    if obj is None:
        return None
    if isinstance(key, int):
        if isinstance(obj, (list, tuple)) and len(obj) > key:
            return obj[key]
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _dig(obj: Any, *path: str | int) -> Any:
    for key in path:
        obj = _lookup(obj, key)
        if obj is None:
            return None
    return obj


_PARTIAL_ERROR_PATH = ("ServiceData", "partialErrors", 0, "errorValues", 0, "message")


def server_message(source: Any) -> str | None:
    """Pull the server's error text out of ``source.response.data``.

    Looks for the first partial error value first, then a top-level
    ``message`` in the response body.
    """
    data = _dig(source, "response", "data")
    if data is None:
        return None
    for candidate in (_dig(data, *_PARTIAL_ERROR_PATH), _lookup(data, "message")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def extract_error_message(error: object, default: str = "Unknown error") -> str:
    """Return the most specific message available for a failure.

    Never raises. For a :class:`ClassifiedError` the nested server error
    structure is searched on the error itself and on its cause; when nothing
    matches, the error's own message is used. Other exceptions are searched
    on themselves only.
    """
    if isinstance(error, ClassifiedError):
        for source in (error, error.cause):
            message = server_message(source)
            if message:
                return message
        return error.message or default
    if isinstance(error, BaseException):
        return server_message(error) or str(error) or default
    if isinstance(error, str) and error:
        return error
    return default
