"""Item retrieval, creation, update and type listing."""

from __future__ import annotations

from typing import Any

from ..parser import as_values
from ..protocol import DEFAULT_CLIENT_ID, DM_LOAD_SERVICE, DM_TYPES_SERVICE, DM_WRITE_SERVICE
from .base import Operation, Params

# Attributes loaded for a single item and inflated on search results
ITEM_ATTRIBUTES = (
    "object_name",
    "object_desc",
    "object_string",
    "item_id",
    "item_revision_id",
    "release_status_list",
    "owning_user",
    "creation_date",
    "last_mod_date",
    "items_tag",
    "revision_list",
    "fnd0_master_form",
)


# =============================================================================
# Get item by id
# =============================================================================


def _validate_get(params: Params) -> str | None:
    if not params.get("item_id"):
        return "Item ID is required"
    return None


def _get_payload(params: Params) -> dict[str, Any]:
    return {
        "objects": [{"uid": params["item_id"], "type": "Item"}],
        "attributes": list(ITEM_ATTRIBUTES),
        "options": {
            "withProperties": True,
            "withRelatedObjects": True,
            "withRevisions": True,
        },
    }


GET_ITEM_BY_ID = Operation(
    name="getItemById",
    service=DM_LOAD_SERVICE,
    operation="loadObjects",
    error_code="API_ERROR",
    failure_message="Failed to get item",
    build_payload=_get_payload,
    validate=_validate_get,
)


# =============================================================================
# Create item
# =============================================================================


def _validate_create(params: Params) -> str | None:
    if not params.get("type") or not params.get("name"):
        return "Type and name are required"
    return None


def _create_payload(params: Params) -> dict[str, Any]:
    values: dict[str, list[Any]] = {
        "object_name": [params["name"]],
        "object_desc": [params.get("description") or ""],
    }
    for key, value in (params.get("properties") or {}).items():
        values[key] = as_values(value)

    return {
        "clientId": params.get("client_id") or DEFAULT_CLIENT_ID,
        "createInput": [{"boName": params["type"], "propertyNameValues": values}],
    }


CREATE_ITEM = Operation(
    name="createItem",
    service=DM_WRITE_SERVICE,
    operation="createRelateAndSubmitObjects",
    error_code="CREATE_ERROR",
    failure_message="Failed to create item",
    build_payload=_create_payload,
    validate=_validate_create,
)


# =============================================================================
# Update item
# =============================================================================


def _validate_update(params: Params) -> str | None:
    if not params.get("item_id") or not params.get("properties"):
        return "Item ID and properties are required"
    return None


def _update_payload(params: Params) -> dict[str, Any]:
    properties = {name: {"values": as_values(value)} for name, value in params["properties"].items()}
    return {"objects": [{"object": params["item_id"], "properties": properties}]}


UPDATE_ITEM = Operation(
    name="updateItem",
    service=DM_WRITE_SERVICE,
    operation="setProperties2",
    error_code="UPDATE_ERROR",
    failure_message="Failed to update item",
    build_payload=_update_payload,
    validate=_validate_update,
)


# =============================================================================
# Item types
# =============================================================================


def _types_payload(params: Params) -> dict[str, Any]:
    return {
        "info": [{"typeName": "Item", "typeNamespace": ""}],
        "pref": {"returnSubtypes": True, "returnTypeHierarchy": True},
    }


GET_ITEM_TYPES = Operation(
    name="getItemTypes",
    service=DM_TYPES_SERVICE,
    operation="getTypeDescriptions",
    error_code="API_ERROR",
    failure_message="Failed to get item types",
    build_payload=_types_payload,
)
