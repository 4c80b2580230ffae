"""Generic command executor.

Every remote operation is described by an :class:`Operation` (plain data
plus a few pure functions). A :class:`Command` binds an operation to a
transport and call-site parameters and runs the shared pipeline:

    session check -> validation -> transport check -> resolve
    -> payload -> transport call -> response mapping -> result

``Command.execute`` never raises; every failure becomes a
:class:`CommandResult` error.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from ..errors import ClassifiedError, ErrorCategory, extract_error_message, log_error
from ..logger import ClientLogger, as_client_logger, new_request_id
from ..session_store import SessionStore
from ..transport import SOATransport
from ..types import CommandResult

T = TypeVar("T")

Params = dict[str, Any]

NO_SESSION = "NO_SESSION"
INVALID_PARAMETER = "INVALID_PARAMETER"
NOT_LOGGED_IN_MESSAGE = "User is not logged in"


class SessionPolicy(str, Enum):
    """What a command does when no session is active."""

    REQUIRED = "required"  # fail with NO_SESSION
    OPTIONAL = "optional"  # run anyway (login)
    SKIP = "skip"  # succeed with no data and no remote call (logout)


def empty_payload(params: Params) -> Any:
    return {}


def passthrough(response: Any) -> Any:
    return response


@dataclass(frozen=True)
class Operation:
    """Descriptor for one remote operation.

    Attributes:
        name: Method name used in logs and error context (e.g. "searchItems")
        service: SOA service name
        operation: SOA operation name
        error_code: Wire code reported when the call fails
        failure_message: Message used when a failure carries no text
        build_payload: params -> request payload
        map_response: raw response -> result data
        validate: params -> problem message, or None when valid
        session: Behaviour when no session is active
        resolve: Async step that adds parameters discovered remotely
        on_success: (command, data) -> data, for side effects such as storing a session
        on_complete: Runs after the call attempt whether it succeeded or not
        classify: failure -> wire code, overriding ``error_code``
    """

    name: str
    service: str
    operation: str
    error_code: str
    failure_message: str = "Operation failed"
    build_payload: Callable[[Params], Any] = empty_payload
    map_response: Callable[[Any], Any] = passthrough
    validate: Callable[[Params], str | None] | None = None
    session: SessionPolicy = SessionPolicy.REQUIRED
    resolve: Callable[[Command[Any]], Awaitable[Params]] | None = None
    on_success: Callable[[Command[Any], Any], Any] | None = None
    on_complete: Callable[[Command[Any]], None] | None = None
    classify: Callable[[BaseException], str] | None = None

    def error_code_for(self, error: BaseException) -> str:
        if self.classify is not None:
            return self.classify(error)
        return self.error_code


class Command(Generic[T]):
    """One invocation of an :class:`Operation`.

    Commands are built per call and not reused. They reference, but do not
    own, the transport and the session store.
    """

    def __init__(
        self,
        operation: Operation,
        logger: logging.Logger | ClientLogger | None,
        transport: SOATransport | None,
        is_logged_in: bool,
        params: Mapping[str, Any] | None = None,
        session_store: SessionStore | None = None,
    ):
        self.operation = operation
        self.transport = transport
        self.is_logged_in = is_logged_in
        self.params: Params = dict(params or {})
        self.session_store = session_store
        self.id = new_request_id("cmd")
        self._logger = as_client_logger(logger)
        self.log = self._logger.bind(self.id)

    def spawn(self, operation: Operation, params: Mapping[str, Any] | None = None) -> Command[Any]:
        """Create a sibling command sharing this command's collaborators."""
        return Command(
            operation,
            self._logger,
            self.transport,
            self.is_logged_in,
            params,
            self.session_store,
        )

    async def execute(self) -> CommandResult[T]:
        op = self.operation
        self.log.debug(f"{op.name} called")

        if not self.is_logged_in:
            if op.session is SessionPolicy.REQUIRED:
                self.log.debug(f"{op.name} failed: No session")
                return CommandResult.failure(NO_SESSION, NOT_LOGGED_IN_MESSAGE)
            if op.session is SessionPolicy.SKIP:
                self.log.debug(f"{op.name} skipped: No session")
                return CommandResult.success(None)

        if op.validate is not None:
            problem = op.validate(self.params)
            if problem:
                self.log.debug(f"{op.name} rejected: {problem}")
                return CommandResult.failure(INVALID_PARAMETER, problem)

        try:
            try:
                data = await self._invoke()
            finally:
                if op.on_complete is not None:
                    op.on_complete(self)
        except Exception as e:
            log_error(e, op.name, self.log)
            return CommandResult.failure(
                op.error_code_for(e),
                extract_error_message(e, op.failure_message),
            )

        self.log.debug(f"{op.name} successful")
        return CommandResult.success(data)

    async def _invoke(self) -> Any:
        op = self.operation
        if self.transport is None:
            raise ClassifiedError(
                "SOA client is not initialized",
                ErrorCategory.UNKNOWN,
                None,
                {"method": op.name},
            )

        params = dict(self.params)
        if op.resolve is not None:
            params.update(await op.resolve(self))

        payload = op.build_payload(params)
        raw = await self.transport.call(op.service, op.operation, payload)

        data = op.map_response(raw)
        if op.on_success is not None:
            data = op.on_success(self, data)
        return data
