"""SOA transport for the Teamcenter client.

Commands never talk HTTP directly: they call a transport that exposes a
single operation, ``call(service, operation, payload)``. This module holds
that contract plus two implementations.

Architecture:
- SOATransport is the PROTOCOL (interface) every transport satisfies
- BaseSOATransport adds tracing and failure classification
- HTTPSOATransport speaks JSON over HTTP to a real server (httpx)
- MockSOATransport answers in memory for tests and ``mock_mode``
"""

from __future__ import annotations

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import httpx

from .config import ClientConfig
from .errors import ClassifiedError, ErrorCategory, ServerFault, handle_api_error
from .logger import ClientLogger, as_client_logger, new_request_id
from .protocol import (
    DM_LOAD_SERVICE,
    DM_PROPERTIES_SERVICE,
    DM_TYPES_SERVICE,
    DEFAULT_SESSION_COOKIE,
    DM_WRITE_SERVICE,
    FINDER_SERVICE,
    SAVED_QUERY_SERVICE,
    SESSION_COOKIES,
    SESSION_FAVORITES_SERVICE,
    SESSION_INFO_SERVICE,
    SESSION_LOGIN_SERVICE,
    SESSION_LOGOUT_SERVICE,
    create_json_request,
    is_login,
)

logger = logging.getLogger(__name__)

# Response headers that may carry the server session id
SESSION_HEADERS = ("X-Siemens-Session-ID", "Tc-Session-ID")


@runtime_checkable
class SOATransport(Protocol):
    """Protocol for SOA transports.

    The transport handles:
    - Wire format and connection management
    - Attaching the current session id to requests
    - Raising (preferably classified) errors on failure
    """

    config: ClientConfig
    session_id: str | None

    async def call(self, service: str, operation: str, payload: Any) -> Any:
        """Invoke ``service.operation`` with ``payload`` and return the decoded result.

        Raises:
            ClassifiedError: On any failure
        """
        ...


class BaseSOATransport(ABC):
    """Base class for transports with common functionality.

    Provides:
    - Input checks on service/operation names
    - Per-call tracing ids
    - Wrapping of unclassified failures as API_RESPONSE errors
    """

    def __init__(
        self,
        config: ClientConfig,
        session_id: str | None = None,
        logger: logging.Logger | ClientLogger | None = None,
    ):
        self.config = config
        self.session_id = session_id
        self._log = as_client_logger(logger)

    async def call(self, service: str, operation: str, payload: Any) -> Any:
        """Invoke a service operation."""
        if not service or not operation:
            raise ClassifiedError(
                "Invalid service or operation parameters",
                ErrorCategory.DATA_VALIDATION,
                None,
                {"service": service, "operation": operation},
            )

        request_id = new_request_id("client")
        self._log.debug(f"[{request_id}] SOA client call: {service}.{operation}")

        try:
            result = await self._do_call(service, operation, payload, request_id)
        except ClassifiedError as e:
            self._log.error(f"[{request_id}] SOA client error ({service}.{operation}): {e}")
            if e.context is None:
                e.context = {"service": service, "operation": operation}
            raise
        except Exception as e:
            self._log.error(f"[{request_id}] SOA client error ({service}.{operation}): {e}")
            raise handle_api_error(e, f"SOA client call to {service}.{operation}") from e

        self._log.debug(f"[{request_id}] SOA client call completed: {service}.{operation}")
        return result

    @abstractmethod
    async def _do_call(self, service: str, operation: str, payload: Any, request_id: str) -> Any:
        """Implementation-specific call logic."""
        ...

    async def aclose(self) -> None:
        """Release resources held by the transport."""

    async def __aenter__(self) -> BaseSOATransport:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


class HTTPSOATransport(BaseSOATransport):
    """Transport over Teamcenter's JSON REST services.

    Each call is ``POST {endpoint}/{service}/{operation}`` with a JSON
    envelope. Session cookies set by the server are kept by the underlying
    ``httpx.AsyncClient`` and mirrored into ``session_id`` after login.

    ``session_id`` and the cookie jar move together: assigning an id that
    has no cookie yet stores it as ``ASP.NET_SessionId``, and assigning
    ``None`` drops every session cookie.
    """

    def __init__(
        self,
        config: ClientConfig,
        session_id: str | None = None,
        logger: logging.Logger | ClientLogger | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http_transport = http_transport
        self._http_client: httpx.AsyncClient | None = None
        self._session_id: str | None = None
        super().__init__(config, session_id, logger)

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @session_id.setter
    def session_id(self, value: str | None) -> None:
        self._session_id = value
        if self._http_client is None:
            # Seeded when the client is created
            return
        if value is None:
            self._clear_session_cookies()
        elif self._session_cookie() is None:
            self._http_client.cookies.set(DEFAULT_SESSION_COOKIE, value)

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._http_transport,
            )
            if self._session_id:
                self._http_client.cookies.set(DEFAULT_SESSION_COOKIE, self._session_id)
        return self._http_client

    def _clear_session_cookies(self) -> None:
        if self._http_client is None:
            return
        for name in SESSION_COOKIES:
            self._http_client.cookies.delete(name)

    async def aclose(self) -> None:
        """Close the HTTP connection pool."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
            **self.config.headers,
        }
        if self.session_id:
            headers["Authorization"] = f"Session {self.session_id}"
        return headers

    def _session_cookie(self) -> str | None:
        if self._http_client is None:
            return None
        # Walk the jar: Cookies.get raises when a name is set for two domains
        for name in SESSION_COOKIES:
            for cookie in self._http_client.cookies.jar:
                if cookie.name == name and cookie.value:
                    return cookie.value
        return None

    async def _do_call(self, service: str, operation: str, payload: Any, request_id: str) -> Any:
        url = f"{self.config.endpoint}/{service}/{operation}"
        envelope = create_json_request(service, operation, payload, self.config.client_id)
        client = self._client()
        if is_login(service, operation):
            # Only the login response may set the new session
            self.session_id = None
        self._log.log_request(service, operation, envelope, request_id)

        try:
            response = await client.post(url, json=envelope, headers=self._headers())
        except httpx.TimeoutException as e:
            error = ClassifiedError(
                f"Request timeout after {self.config.timeout}s",
                ErrorCategory.API_TIMEOUT,
                e,
                {"service": service, "operation": operation},
            )
            self._log.log_response(service, operation, None, request_id, error)
            raise error from e
        except httpx.TransportError as e:
            error = ClassifiedError(
                f"Network error connecting to Teamcenter: {e}",
                ErrorCategory.NETWORK,
                e,
                {"service": service, "operation": operation, "endpoint": url},
            )
            self._log.log_response(service, operation, None, request_id, error)
            raise error from e

        if response.is_error:
            error = self._status_error(service, operation, response)
            self._log.log_response(service, operation, None, request_id, error)
            raise error

        try:
            data = response.json() if response.content else {}
        except ValueError as e:
            error = ClassifiedError(
                "Failed to parse response as JSON",
                ErrorCategory.DATA_PARSING,
                e,
                {"service": service, "operation": operation, "responseText": response.text[:500]},
            )
            self._log.log_response(service, operation, None, request_id, error)
            raise error from e

        if is_login(service, operation):
            self._update_session_after_login(response, data, request_id)

        self._log.log_response(service, operation, data, request_id)
        return data

    def _update_session_after_login(self, response: httpx.Response, data: Any, request_id: str) -> None:
        """Cookie first, then response headers, then the body's ``sessionId``."""
        session_id = self._session_cookie()
        source = "cookie"
        if not session_id:
            session_id = next((response.headers[h] for h in SESSION_HEADERS if h in response.headers), None)
            source = "header"
        if not session_id and isinstance(data, dict):
            session_id = data.get("sessionId")
            source = "body"
        if session_id:
            self.session_id = session_id
            self._log.debug(f"[{request_id}] Login: session id taken from {source}")

    def _status_error(self, service: str, operation: str, response: httpx.Response) -> ClassifiedError:
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        status = response.status_code
        fault = ServerFault(response.text[:500] or response.reason_phrase, status, body)
        context = {"status": status, "service": service, "operation": operation}

        if status in (401, 403):
            return ClassifiedError(
                f"Authentication error: {response.reason_phrase}",
                ErrorCategory.AUTH_SESSION,
                fault,
                context,
            )
        if status == 404:
            message = f"Service not found: {service}.{operation}"
        elif status >= 500:
            message = f"Server error: {response.reason_phrase}"
        else:
            message = f"Teamcenter API error: {status} {response.reason_phrase}"
        return ClassifiedError(message, ErrorCategory.API_RESPONSE, fault, context)


# =============================================================================
# Mock transport
# =============================================================================

Handler = Callable[[Any], Any]

MOCK_SESSION_ID = "mock-session-123"


def _mock_items() -> list[dict[str, Any]]:
    return [
        {
            "uid": "item-001",
            "type": "Item",
            "properties": {
                "object_name": ["Part ABC-123"],
                "object_desc": ["Mechanical part for assembly"],
                "object_string": ["ABC-123: Mechanical part"],
                "item_revision_id": ["A"],
                "release_status_list": ["Released"],
                "owning_user": ["Administrator"],
                "last_mod_date": ["2023-08-15"],
            },
        },
        {
            "uid": "item-002",
            "type": "Item",
            "properties": {
                "object_name": ["Assembly XYZ-789"],
                "object_desc": ["Final assembly for product"],
                "object_string": ["XYZ-789: Final assembly"],
                "item_revision_id": ["B"],
                "release_status_list": ["In Review"],
                "owning_user": ["Administrator"],
                "last_mod_date": ["2023-09-20"],
            },
        },
    ]


def _mock_login(payload: Any) -> dict[str, Any]:
    credentials = payload or {}
    user = credentials.get("username")
    password = credentials.get("password")
    # admin/admin, or any user whose password equals the user name
    if not user or user != password:
        raise ClassifiedError("Invalid credentials", ErrorCategory.AUTH_SESSION, None, {"user": user})
    return {
        "serverInfo": {"Version": "14.0.0.0", "HostName": "localhost", "UserID": user},
        "sessionId": MOCK_SESSION_ID,
        "userId": user,
        "userName": "Administrator" if user == "admin" else user,
        "groupId": "group-1",
        "groupName": "Engineering",
        "roleId": "role-1",
        "roleName": "Engineer",
    }


def _mock_search(payload: Any) -> dict[str, Any]:
    items = _mock_items()
    limit = ((payload or {}).get("searchInput") or {}).get("maxToReturn") or len(items)
    items = items[:limit]
    return {
        "objects": items,
        "totalFound": len(items),
        "totalLoaded": len(items),
        "searchFilterMap": {},
        "ServiceData": {"plain": [obj["uid"] for obj in items]},
    }


def _mock_load(payload: Any) -> dict[str, Any]:
    uids = [obj.get("uid") for obj in (payload or {}).get("objects", [])]
    items = {obj["uid"]: obj for obj in _mock_items()}
    return {
        "ServiceData": {
            "plain": [uid for uid in uids if uid in items],
            "modelObjects": {uid: items[uid] for uid in uids if uid in items},
        }
    }


def _mock_create(payload: Any) -> dict[str, Any]:
    inputs = (payload or {}).get("createInput") or []
    return {
        "output": [
            {
                "clientId": (payload or {}).get("clientId", ""),
                "objects": [{"uid": f"created-{i + 1:03d}", "type": entry.get("boName", "Item")}],
            }
            for i, entry in enumerate(inputs)
        ],
        "ServiceData": {"created": [f"created-{i + 1:03d}" for i in range(len(inputs))]},
    }


def _mock_set_properties(payload: Any) -> dict[str, Any]:
    updated = [obj.get("object") for obj in (payload or {}).get("objects", [])]
    return {"ServiceData": {"updated": updated}}


def _mock_item_types(payload: Any) -> dict[str, Any]:
    return {
        "types": [
            {"name": "Item", "displayName": "Item", "parentTypeName": "WorkspaceObject"},
            {"name": "Document", "displayName": "Document", "parentTypeName": "Item"},
            {"name": "Part", "displayName": "Part", "parentTypeName": "Item"},
        ]
    }


def _mock_session_info(payload: Any) -> dict[str, Any]:
    return {
        "user": {"uid": "user-001", "type": "User"},
        "group": {"uid": "group-1", "type": "Group"},
        "role": {"uid": "role-1", "type": "Role"},
        "extraInfo": {"TcServerID": MOCK_SESSION_ID},
    }


def _mock_favorites(payload: Any) -> dict[str, Any]:
    return {"favoritesInfo": {"objects": [{"uid": "item-001", "type": "Item"}]}}


def _mock_user_properties(payload: Any) -> dict[str, Any]:
    return {
        "plain": [obj.get("uid") for obj in (payload or {}).get("objects", [])],
        "modelObjects": {
            obj.get("uid"): {
                "uid": obj.get("uid"),
                "type": "User",
                "props": {"user_id": {"uiValues": ["admin"]}, "person": {"uiValues": ["Administrator"]}},
            }
            for obj in (payload or {}).get("objects", [])
        },
    }


DEFAULT_MOCK_HANDLERS: dict[tuple[str, str], Handler] = {
    (SESSION_LOGIN_SERVICE, "login"): _mock_login,
    (SESSION_LOGOUT_SERVICE, "logout"): lambda payload: {"success": True},
    (FINDER_SERVICE, "performSearch"): _mock_search,
    (SAVED_QUERY_SERVICE, "performSavedSearch"): _mock_search,
    (DM_LOAD_SERVICE, "loadObjects"): _mock_load,
    (DM_WRITE_SERVICE, "createRelateAndSubmitObjects"): _mock_create,
    (DM_WRITE_SERVICE, "setProperties2"): _mock_set_properties,
    (DM_TYPES_SERVICE, "getTypeDescriptions"): _mock_item_types,
    (SESSION_INFO_SERVICE, "getTCSessionInfo"): _mock_session_info,
    (SESSION_FAVORITES_SERVICE, "getFavorites"): _mock_favorites,
    (DM_PROPERTIES_SERVICE, "getProperties"): _mock_user_properties,
}


class MockSOATransport(BaseSOATransport):
    """Mock transport for testing and ``mock_mode``.

    Answers the supported operations from canned data, records every call
    and allows overriding responses. No actual I/O.

    Usage:
        transport = MockSOATransport()
        transport.set_response("Query-2012-10-Finder", "performSearch", {"objects": []})

        result = await transport.call("Query-2012-10-Finder", "performSearch", {})

        assert transport.recorded_calls[0][1] == "performSearch"
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        session_id: str | None = None,
        logger: logging.Logger | ClientLogger | None = None,
        latency: float = 0.0,
    ):
        super().__init__(config or ClientConfig(mock_mode=True), session_id, logger)
        self.latency = latency
        self._handlers: dict[tuple[str, str], Handler] = dict(DEFAULT_MOCK_HANDLERS)
        self._recorded_calls: list[tuple[str, str, Any]] = []

    @property
    def recorded_calls(self) -> list[tuple[str, str, Any]]:
        """Get all (service, operation, payload) calls sent through this transport."""
        return self._recorded_calls.copy()

    def set_response(self, service: str, operation: str, response: Any) -> None:
        """Set a canned response for an operation.

        Args:
            service: Service name (e.g., "Core-2008-03-Session")
            operation: Operation name (e.g., "getFavorites")
            response: Value to return, or an exception to raise (a fresh
                copy on every call)
        """

        def handler(payload: Any) -> Any:
            if isinstance(response, BaseException):
                raise copy.copy(response)
            return copy.deepcopy(response)

        self._handlers[(service, operation)] = handler

    def clear(self) -> None:
        """Clear recorded calls and restore the default responses."""
        self._recorded_calls.clear()
        self._handlers = dict(DEFAULT_MOCK_HANDLERS)

    async def _do_call(self, service: str, operation: str, payload: Any, request_id: str) -> Any:
        self._recorded_calls.append((service, operation, copy.deepcopy(payload)))
        self._log.log_request(service, operation, payload, request_id)
        self._log.debug(f"[{request_id}] SOA call (MOCK MODE): {service}.{operation}")

        if self.latency:
            await asyncio.sleep(self.latency)

        handler = self._handlers.get((service, operation))
        if handler is None:
            error = ClassifiedError(
                f"Unimplemented SOA service: {service}.{operation}",
                ErrorCategory.API_RESPONSE,
                None,
                {"service": service, "operation": operation},
            )
            self._log.log_response(service, operation, None, request_id, error)
            raise error

        try:
            result = handler(payload)
        except Exception as e:
            self._log.log_response(service, operation, None, request_id, e)
            raise

        if is_login(service, operation) and isinstance(result, dict) and result.get("sessionId"):
            self.session_id = result["sessionId"]

        self._log.log_response(service, operation, result, request_id)
        return result


# Factory functions


def create_http_transport(
    config: ClientConfig,
    session_id: str | None = None,
    logger: logging.Logger | ClientLogger | None = None,
) -> HTTPSOATransport:
    """Create an HTTP transport for a real Teamcenter server."""
    return HTTPSOATransport(config, session_id, logger)


def create_mock_transport(
    config: ClientConfig | None = None,
    session_id: str | None = None,
    logger: logging.Logger | ClientLogger | None = None,
) -> MockSOATransport:
    """Create a mock transport for testing."""
    return MockSOATransport(config, session_id, logger)


def create_transport(
    config: ClientConfig,
    session_id: str | None = None,
    logger: logging.Logger | ClientLogger | None = None,
) -> BaseSOATransport:
    """Create the transport selected by ``config.mock_mode``."""
    if config.mock_mode:
        return create_mock_transport(config, session_id, logger)
    return create_http_transport(config, session_id, logger)
