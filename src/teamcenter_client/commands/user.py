"""User property lookups."""

from __future__ import annotations

from typing import Any

from ..protocol import DM_PROPERTIES_SERVICE
from .base import Command, Operation, Params
from .session import current_user_uid

DEFAULT_USER_ATTRIBUTES = (
    "user_id",
    "person",
    "os_username",
    "last_login_time",
    "volume",
    "home_folder",
)


def _validate_uid(params: Params) -> str | None:
    if not params.get("uid"):
        return "User UID is required"
    return None


def _properties_payload(params: Params) -> dict[str, Any]:
    return {
        "objects": [{"uid": params["uid"], "className": "User", "type": "User"}],
        "attributes": list(params.get("attributes") or DEFAULT_USER_ATTRIBUTES),
    }


async def _resolve_current_user(command: Command[Any]) -> Params:
    return {"uid": await current_user_uid(command)}


GET_USER_PROPERTIES = Operation(
    name="getUserProperties",
    service=DM_PROPERTIES_SERVICE,
    operation="getProperties",
    error_code="USER_PROPERTIES_ERROR",
    failure_message="Failed to retrieve user properties",
    build_payload=_properties_payload,
    validate=_validate_uid,
)

GET_LOGGED_USER_PROPERTIES = Operation(
    name="getLoggedUserProperties",
    service=DM_PROPERTIES_SERVICE,
    operation="getProperties",
    error_code="USER_PROPERTIES_ERROR",
    failure_message="Failed to retrieve logged user properties",
    build_payload=_properties_payload,
    resolve=_resolve_current_user,
)
