"""Operation descriptors and the generic command that runs them."""

from .auth import LOGIN, LOGOUT
from .base import (
    INVALID_PARAMETER,
    NO_SESSION,
    NOT_LOGGED_IN_MESSAGE,
    Command,
    Operation,
    SessionPolicy,
)
from .items import CREATE_ITEM, GET_ITEM_BY_ID, GET_ITEM_TYPES, ITEM_ATTRIBUTES, UPDATE_ITEM
from .search import (
    GET_LAST_CREATED_ITEMS,
    GET_USER_OWNED_ITEMS,
    MAX_SEARCH_LIMIT,
    SEARCH_ITEMS,
    string_filter,
)
from .session import GET_FAVORITES, GET_SESSION_INFO, current_user_uid
from .user import DEFAULT_USER_ATTRIBUTES, GET_LOGGED_USER_PROPERTIES, GET_USER_PROPERTIES

__all__ = [
    # Executor
    "Command",
    "Operation",
    "SessionPolicy",
    "NO_SESSION",
    "INVALID_PARAMETER",
    "NOT_LOGGED_IN_MESSAGE",
    # Session
    "LOGIN",
    "LOGOUT",
    "GET_FAVORITES",
    "GET_SESSION_INFO",
    "current_user_uid",
    # Items
    "GET_ITEM_BY_ID",
    "CREATE_ITEM",
    "UPDATE_ITEM",
    "GET_ITEM_TYPES",
    "ITEM_ATTRIBUTES",
    # Search
    "SEARCH_ITEMS",
    "GET_LAST_CREATED_ITEMS",
    "GET_USER_OWNED_ITEMS",
    "MAX_SEARCH_LIMIT",
    "string_filter",
    # User
    "GET_USER_PROPERTIES",
    "GET_LOGGED_USER_PROPERTIES",
    "DEFAULT_USER_ATTRIBUTES",
]
