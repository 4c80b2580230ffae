"""Teamcenter SOA wire conventions.

Every remote call is a POST to ``{endpoint}/{service}/{operation}`` whose
JSON body is an envelope ``{"header": {...}, "body": {...}}``.
"""

from __future__ import annotations

import uuid
from typing import Any

# Service names
SESSION_LOGIN_SERVICE = "Core-2011-06-Session"
SESSION_LOGOUT_SERVICE = "Core-2007-06-Session"
SESSION_INFO_SERVICE = "Core-2007-01-Session"
SESSION_FAVORITES_SERVICE = "Core-2008-03-Session"
FINDER_SERVICE = "Query-2012-10-Finder"
SAVED_QUERY_SERVICE = "Query-2010-04-SavedQuery"
DM_PROPERTIES_SERVICE = "Core-2006-03-DataManagement"
DM_TYPES_SERVICE = "Core-2007-01-DataManagement"
DM_LOAD_SERVICE = "Core-2007-09-DataManagement"
DM_WRITE_SERVICE = "Core-2010-09-DataManagement"

DEFAULT_CLIENT_ID = "PythonTeamcenterClient"

SESSION_COOKIES = ("JSESSIONID", "ASP.NET_SessionId")

# Cookie used to replay a session id the server did not set as a cookie
DEFAULT_SESSION_COOKIE = "ASP.NET_SessionId"

MASK = "***"


def is_login(service: str, operation: str) -> bool:
    return service == SESSION_LOGIN_SERVICE and operation == "login"


def create_json_request(
    service: str,
    operation: str,
    params: Any,
    client_id: str = DEFAULT_CLIENT_ID,
) -> dict[str, Any]:
    """Build the request envelope for a service call.

    Login credentials given as ``{"username", "password"}`` are reshaped into
    the server's ``credentials`` block; every other payload is sent as the
    body unchanged.
    """
    header = {
        "state": {
            "stateless": True,
            "unloadObjects": True,
            "enableServerStateHeaders": True,
            "formatProperties": True,
            "clientID": client_id,
        },
        "policy": {},
    }

    if is_login(service, operation):
        credentials = params or {}
        body: Any = {
            "credentials": {
                "user": credentials.get("username", ""),
                "password": credentials.get("password", ""),
                "group": credentials.get("group", ""),
                "role": credentials.get("role", ""),
                "locale": credentials.get("locale", "en_US"),
                "descrimator": f"{client_id}_{uuid.uuid4().hex[:12]}",
            }
        }
    else:
        body = params if params is not None else {}

    return {"header": header, "body": body}


def mask_credentials(service: str, operation: str, params: Any) -> Any:
    """Replace passwords in a login payload or envelope with ``***``.

    Mutates and returns ``params``; pass a copy when the original is still
    needed.
    """
    if not is_login(service, operation) or not isinstance(params, dict):
        return params

    candidates = [params, params.get("credentials")]
    body = params.get("body")
    if isinstance(body, dict):
        candidates.append(body.get("credentials"))
    for block in candidates:
        if isinstance(block, dict) and block.get("password"):
            block["password"] = MASK
    return params
