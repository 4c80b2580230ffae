"""Search operations.

All three searches send the same ``searchInput`` structure and normalize
the returned objects into :class:`DomainObject` lists. Free-text search
goes to the Finder service by default; recent and owned items use the
saved-query service.
"""

from __future__ import annotations

from typing import Any

from ..parser import normalize_search_results
from ..protocol import FINDER_SERVICE, SAVED_QUERY_SERVICE
from .base import Command, Operation, Params
from .items import ITEM_ATTRIBUTES
from .session import current_user_uid

MAX_SEARCH_LIMIT = 100
OWNED_ITEMS_LIMIT = 50

BASE_PROVIDER = "Fnd0BaseProvider"
FULL_TEXT_PROVIDER = "Awp0FullTextSearchProvider"


def string_filter(value: str) -> dict[str, Any]:
    """A single selected ``StringFilter`` entry for ``searchFilterMap``."""
    return {
        "searchFilterType": "StringFilter",
        "stringValue": value,
        "startDateValue": "",
        "endDateValue": "",
        "startNumericValue": 0,
        "endNumericValue": 0,
        "count": 1,
        "selected": True,
        "startEndRange": "",
    }


def search_input(
    provider: str,
    criteria: dict[str, Any],
    limit: int,
    filters: dict[str, list[dict[str, Any]]],
    sort_field: str,
) -> dict[str, Any]:
    return {
        "searchInput": {
            "providerName": provider,
            "searchCriteria": criteria,
            "startIndex": 0,
            "maxToReturn": limit,
            "maxToLoad": limit,
            "searchFilterMap": filters,
            "searchSortCriteria": [{"fieldName": sort_field, "sortDirection": "DESC"}],
            "searchFilterFieldSortType": "Alphabetical",
            "attributesToInflate": list(ITEM_ATTRIBUTES),
        }
    }


def _validate_limit(params: Params) -> str | None:
    limit = params.get("limit")
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0 or limit > MAX_SEARCH_LIMIT:
        return f"Limit must be between 1 and {MAX_SEARCH_LIMIT}"
    return None


# =============================================================================
# Free-text search
# =============================================================================


def _validate_search(params: Params) -> str | None:
    if not params.get("query"):
        return "Search query is required"
    return _validate_limit(params)


def _search_payload(params: Params) -> dict[str, Any]:
    item_type = params.get("type")
    filters = {"Item Type": [string_filter(item_type)]} if item_type else {}
    return search_input(BASE_PROVIDER, {"Name": params["query"]}, params["limit"], filters, "creation_date")


SEARCH_ITEMS = Operation(
    name="searchItems",
    service=FINDER_SERVICE,
    operation="performSearch",
    error_code="SEARCH_ERROR",
    failure_message="Failed to search items",
    build_payload=_search_payload,
    map_response=normalize_search_results,
    validate=_validate_search,
)


# =============================================================================
# Last created items
# =============================================================================


def _recent_payload(params: Params) -> dict[str, Any]:
    return search_input(
        FULL_TEXT_PROVIDER,
        {"searchString": "*"},
        params["limit"],
        {"Type": [string_filter("Item")]},
        "creation_date",
    )


GET_LAST_CREATED_ITEMS = Operation(
    name="getLastCreatedItems",
    service=SAVED_QUERY_SERVICE,
    operation="performSavedSearch",
    error_code="SEARCH_ERROR",
    failure_message="Failed to retrieve items",
    build_payload=_recent_payload,
    map_response=normalize_search_results,
    validate=_validate_limit,
)


# =============================================================================
# Items owned by the logged-in user
# =============================================================================


async def _resolve_owner(command: Command[Any]) -> Params:
    return {"owner_uid": await current_user_uid(command)}


def _owned_payload(params: Params) -> dict[str, Any]:
    return search_input(
        FULL_TEXT_PROVIDER,
        {"owningUser": params["owner_uid"], "searchString": "*"},
        OWNED_ITEMS_LIMIT,
        {"Type": [string_filter("Item")]},
        "last_mod_date",
    )


GET_USER_OWNED_ITEMS = Operation(
    name="getUserOwnedItems",
    service=SAVED_QUERY_SERVICE,
    operation="performSavedSearch",
    error_code="SEARCH_ERROR",
    failure_message="Failed to retrieve items",
    build_payload=_owned_payload,
    map_response=normalize_search_results,
    resolve=_resolve_owner,
)
