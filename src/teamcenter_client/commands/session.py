"""Session queries: favorites and session info."""

from __future__ import annotations

from typing import Any

from ..errors import ClassifiedError, ErrorCategory
from ..protocol import SESSION_FAVORITES_SERVICE, SESSION_INFO_SERVICE
from .base import Command, Operation

GET_FAVORITES = Operation(
    name="getFavorites",
    service=SESSION_FAVORITES_SERVICE,
    operation="getFavorites",
    error_code="FAVORITES_ERROR",
    failure_message="Failed to retrieve favorites",
)

GET_SESSION_INFO = Operation(
    name="getSessionInfo",
    service=SESSION_INFO_SERVICE,
    operation="getTCSessionInfo",
    error_code="SESSION_INFO_ERROR",
    failure_message="Failed to retrieve session info",
)


async def current_user_uid(command: Command[Any]) -> str:
    """Look up the logged-in user's uid through the session info operation.

    Raises:
        ClassifiedError: API_RESPONSE when the lookup fails, DATA_PARSING
            when the response has no ``user.uid``
    """
    method = command.operation.name
    result = await command.spawn(GET_SESSION_INFO).execute()
    if result.error is not None:
        raise ClassifiedError(
            f"Failed to get session info: {result.error.message}",
            ErrorCategory.API_RESPONSE,
            None,
            {"method": method},
        )

    info = result.data
    user = info.get("user") if isinstance(info, dict) else None
    uid = user.get("uid") if isinstance(user, dict) else None
    if not uid:
        raise ClassifiedError(
            "Could not retrieve current user UID from session info",
            ErrorCategory.DATA_PARSING,
            None,
            {"method": method},
        )

    command.log.debug(f"Retrieved current user UID: {uid}")
    return uid
