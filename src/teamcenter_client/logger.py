"""Logging sink for the Teamcenter client.

Wraps a stdlib logger so every line for one invocation carries the same
correlation id, and adds helpers that log an outbound SOA request and its
response with credentials masked.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import MutableMapping
from typing import Any

from .protocol import mask_credentials

DEFAULT_LOGGER_NAME = "teamcenter_client"


def new_request_id(prefix: str = "req") -> str:
    """Generate a short correlation id such as ``req_3f9a0c1b2d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class ClientLogger(logging.LoggerAdapter):
    """Logger adapter with request/response correlation helpers.

    Usage::

        log = ClientLogger(logging.getLogger("myapp.plm"))
        request_id = log.log_request("Core-2011-06-Session", "login", params)
        ...
        log.log_response("Core-2011-06-Session", "login", result, request_id)
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        extra: dict[str, Any] | None = None,
    ):
        super().__init__(logger or logging.getLogger(DEFAULT_LOGGER_NAME), extra or {})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        request_id = extra.get("request_id")
        if request_id:
            msg = f"[{request_id}] {msg}"
        return msg, kwargs

    def bind(self, request_id: str) -> ClientLogger:
        """Return a logger that prefixes every line with ``request_id``."""
        return ClientLogger(self.logger, {**(self.extra or {}), "request_id": request_id})

    @property
    def request_id(self) -> str | None:
        return (self.extra or {}).get("request_id")

    def log_request(
        self,
        service: str,
        operation: str,
        params: Any,
        request_id: str | None = None,
    ) -> str:
        """Log an outbound SOA request and return its correlation id."""
        request_id = request_id or new_request_id()
        sanitized = mask_credentials(service, operation, copy.deepcopy(params))
        self.logger.info(
            f"[{request_id}] TC REQUEST: {service}.{operation}",
            extra={"params": sanitized},
        )
        return request_id

    def log_response(
        self,
        service: str,
        operation: str,
        response: Any,
        request_id: str,
        error: BaseException | None = None,
    ) -> None:
        """Log the response (or failure) for a request logged earlier."""
        if error is not None:
            self.logger.error(
                f"[{request_id}] TC RESPONSE ERROR: {service}.{operation}: {error}",
            )
        else:
            self.logger.info(
                f"[{request_id}] TC RESPONSE: {service}.{operation}",
                extra={"response": response},
            )


def as_client_logger(logger: logging.Logger | ClientLogger | None) -> ClientLogger:
    """Coerce a stdlib logger (or None) into a :class:`ClientLogger`."""
    if isinstance(logger, ClientLogger):
        return logger
    return ClientLogger(logger)
