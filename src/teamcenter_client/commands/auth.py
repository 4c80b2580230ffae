"""Login and logout."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..errors import ClassifiedError, ErrorCategory
from ..parser import parse_session
from ..protocol import SESSION_LOGIN_SERVICE, SESSION_LOGOUT_SERVICE
from ..types import Credentials, Session
from .base import Command, Operation, Params, SessionPolicy

_LOGIN_ERROR_CODES = {
    ErrorCategory.AUTH_SESSION: "INVALID_CREDENTIALS",
    ErrorCategory.NETWORK: "NETWORK_ERROR",
    ErrorCategory.API_TIMEOUT: "TIMEOUT",
}


def _credentials(params: Params) -> dict[str, Any]:
    credentials = params.get("credentials")
    if isinstance(credentials, Credentials):
        return credentials.model_dump()
    if isinstance(credentials, Mapping):
        return dict(credentials)
    return {}


def _validate_login(params: Params) -> str | None:
    credentials = _credentials(params)
    if not credentials.get("username") or not credentials.get("password"):
        return "Username and password are required"
    return None


def _login_error_code(error: BaseException) -> str:
    if isinstance(error, ClassifiedError):
        return _LOGIN_ERROR_CODES.get(error.category, "LOGIN_ERROR")
    return "LOGIN_ERROR"


def _store_session(command: Command[Any], session: Session) -> Session:
    transport = command.transport
    if transport is not None:
        if transport.session_id:
            # Session cookie captured by the transport wins over the body
            session = session.model_copy(update={"session_id": transport.session_id})
        elif session.session_id:
            transport.session_id = session.session_id

    if command.session_store is not None:
        command.session_store.store(session, command.log)
    return session


def _drop_session(command: Command[Any]) -> None:
    if command.session_store is not None:
        command.session_store.clear(command.log)
    if command.transport is not None:
        command.transport.session_id = None


LOGIN = Operation(
    name="login",
    service=SESSION_LOGIN_SERVICE,
    operation="login",
    error_code="LOGIN_ERROR",
    failure_message="Login failed",
    build_payload=_credentials,
    map_response=parse_session,
    validate=_validate_login,
    session=SessionPolicy.OPTIONAL,
    on_success=_store_session,
    classify=_login_error_code,
)

LOGOUT = Operation(
    name="logout",
    service=SESSION_LOGOUT_SERVICE,
    operation="logout",
    error_code="LOGOUT_ERROR",
    failure_message="Logout failed",
    map_response=lambda response: None,
    session=SessionPolicy.SKIP,
    on_complete=_drop_session,
)
