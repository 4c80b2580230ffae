"""Response normalization.

Turns loosely-typed server objects into :class:`DomainObject` and
:class:`Session`. Nothing here raises on a malformed payload: missing or
unexpected fields degrade to empty strings.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .types import DomainObject, SearchResponse, Session

logger = logging.getLogger(__name__)

STATUS_RELEASED = "Released"
STATUS_IN_REVIEW = "In Review"
STATUS_OBSOLETE = "Obsolete"
STATUS_IN_WORK = "In Work"


def first_value(value: Any, default: str = "") -> Any:
    """Return the first element of a multi-valued property.

    Scalars are returned as-is; empty lists and None give ``default``.
    """
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return value[0] if value and value[0] is not None else default
    return value


def as_values(value: Any) -> list[Any]:
    """Wrap a scalar into a single-element list; lists and tuples pass through."""
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def property_map(raw: Any) -> dict[str, Any]:
    """Coerce the ``properties`` of a raw object into a name → value map.

    Accepts a mapping, or a list of ``{"name": ..., "value": ...}`` entries
    as served by mock servers.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    props: dict[str, Any] = {}
    if isinstance(raw, (list, tuple)):
        for entry in raw:
            if isinstance(entry, Mapping) and isinstance(entry.get("name"), str):
                props[entry["name"]] = entry.get("value")
    return props


def get_property_value(props: Mapping[str, Any] | None, name: str, default: Any = "") -> Any:
    """Read a property, unwrapping a multi-valued entry to its first value."""
    if not props:
        return default
    value = first_value(props.get(name), default)
    if isinstance(value, Mapping):
        # {"uiValues": [...], "dbValues": [...]} style entries
        for key in ("uiValues", "dbValues", "value"):
            if key in value:
                return first_value(value[key], default)
        return default
    return value


def _text(props: Mapping[str, Any], name: str, default: str = "") -> str:
    value = get_property_value(props, name, default)
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def item_status(props: Mapping[str, Any]) -> str:
    """Map ``release_status_list`` onto a simple status string."""
    statuses = props.get("release_status_list")
    if not statuses:
        return STATUS_IN_WORK
    values = as_values(statuses)
    for status in (STATUS_RELEASED, STATUS_IN_REVIEW, STATUS_OBSOLETE):
        if status in values:
            return status
    return STATUS_IN_WORK


def normalize_object(raw: Any) -> DomainObject:
    """Convert a raw server object into a :class:`DomainObject`.

    The raw object carries ``uid``, ``type`` and ``properties`` (or
    ``props``) where each property maps to a list of values. ``name`` and
    ``description`` come from ``object_name`` and ``object_desc``; every
    property is preserved in ``properties``.
    """
    if not isinstance(raw, Mapping):
        logger.debug(f"Cannot normalize non-mapping object: {type(raw).__name__}")
        raw = {}

    props = property_map(raw.get("properties") or raw.get("props") or {})
    uid = raw.get("uid") or _text(props, "item_id")

    return DomainObject(
        id=str(uid or ""),
        type=str(raw.get("type") or "Unknown"),
        name=_text(props, "object_name"),
        description=_text(props, "object_desc"),
        revision=_text(props, "item_revision_id"),
        owner=_text(props, "owning_user"),
        status=item_status(props),
        title=_text(props, "object_string"),
        modified_date=_text(props, "last_mod_date"),
        properties=props,
    )


def parse_search_response(raw: Any) -> SearchResponse:
    """Decode a search response; results may be under ``objects`` or ``searchResults``."""
    if not isinstance(raw, Mapping):
        return SearchResponse()

    objects = raw.get("objects")
    if objects is None:
        objects = raw.get("searchResults")
    if not isinstance(objects, list):
        objects = []

    return SearchResponse(
        objects=[o for o in objects if isinstance(o, Mapping)],
        total_found=_as_int(raw.get("totalFound"), len(objects)),
        total_loaded=_as_int(raw.get("totalLoaded"), len(objects)),
        search_filter_map=raw.get("searchFilterMap") if isinstance(raw.get("searchFilterMap"), dict) else None,
        service_data=raw.get("ServiceData") or raw.get("serviceData") or None,
    )


def normalize_search_results(raw: Any) -> list[DomainObject]:
    return [normalize_object(obj) for obj in parse_search_response(raw).objects]


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_session(raw: Any) -> Session:
    """Build a :class:`Session` from a login response.

    Understands the ``serverInfo`` block of the 2011 login service as well
    as flat ``sessionId``/``userId`` responses.
    """
    if not isinstance(raw, Mapping):
        return Session(status="OK")

    server_info = raw.get("serverInfo") if isinstance(raw.get("serverInfo"), Mapping) else None
    info = server_info or {}

    user_id = raw.get("userId") or info.get("UserID") or ""
    return Session(
        session_id=str(raw.get("sessionId") or info.get("TcServerID") or ""),
        user_id=str(user_id),
        user_name=str(raw.get("userName") or user_id),
        group=raw.get("group"),
        role=raw.get("role"),
        group_id=raw.get("groupId"),
        group_name=raw.get("groupName"),
        role_id=raw.get("roleId"),
        role_name=raw.get("roleName"),
        status=raw.get("status") or "OK",
        soa_version=info.get("Version") or info.get("version"),
        locale=raw.get("locale") or info.get("Locale"),
        server_info=dict(server_info) if server_info else None,
    )
