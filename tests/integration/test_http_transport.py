"""HTTP transport tests driven through httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from teamcenter_client.commands import LOGIN, SEARCH_ITEMS, Command
from teamcenter_client.config import ClientConfig
from teamcenter_client.errors import ClassifiedError, ErrorCategory, ServerFault
from teamcenter_client.service import TeamcenterService
from teamcenter_client.session_store import FileSessionStore
from teamcenter_client.transport import HTTPSOATransport, SOATransport
from teamcenter_client.types import Session

ENDPOINT = "http://tc.example.com/tc/JsonRestServices"


def make_transport(handler, session_id: str | None = None, **config) -> HTTPSOATransport:
    return HTTPSOATransport(
        ClientConfig(endpoint=ENDPOINT, **config),
        session_id=session_id,
        http_transport=httpx.MockTransport(handler),
    )


class TestRequests:
    @pytest.mark.asyncio
    async def test_posts_envelope_to_service_url(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"favorites": []})

        transport = make_transport(handler, session_id="sess-9", headers={"X-Tenant": "eng"}, client_id="Tests")
        result = await transport.call("Core-2008-03-Session", "getFavorites", {"a": 1})
        await transport.aclose()

        assert result == {"favorites": []}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{ENDPOINT}/Core-2008-03-Session/getFavorites"
        assert request.headers["Authorization"] == "Session sess-9"
        assert request.headers["X-Tenant"] == "eng"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body["body"] == {"a": 1}
        assert body["header"]["state"]["clientID"] == "Tests"

    @pytest.mark.asyncio
    async def test_no_authorization_without_session(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        async with make_transport(handler) as transport:
            await transport.call("Core-2007-01-Session", "getTCSessionInfo", {})

        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self):
        async with make_transport(lambda request: httpx.Response(200)) as transport:
            assert await transport.call("Core-2007-06-Session", "logout", {}) == {}

    def test_satisfies_protocol(self):
        assert isinstance(make_transport(lambda request: httpx.Response(200)), SOATransport)

    @pytest.mark.asyncio
    async def test_rejects_blank_service(self):
        async with make_transport(lambda request: httpx.Response(200)) as transport:
            with pytest.raises(ClassifiedError) as exc_info:
                await transport.call("", "login", {})

        assert exc_info.value.category == ErrorCategory.DATA_VALIDATION


class TestLoginSession:
    @staticmethod
    async def _login(handler) -> HTTPSOATransport:
        transport = make_transport(handler)
        await transport.call("Core-2011-06-Session", "login", {"username": "admin", "password": "admin"})
        return transport

    @pytest.mark.asyncio
    async def test_session_from_cookie(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"sessionId": "from-body"},
                headers={"Set-Cookie": "JSESSIONID=from-cookie; Path=/"},
            )

        transport = await self._login(handler)

        assert transport.session_id == "from-cookie"
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_session_from_header(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"sessionId": "from-body"}, headers={"Tc-Session-ID": "from-header"})

        transport = await self._login(handler)

        assert transport.session_id == "from-header"
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_session_from_body(self):
        transport = await self._login(lambda request: httpx.Response(200, json={"sessionId": "from-body"}))

        assert transport.session_id == "from-body"
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_login_sends_credentials_block(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={})

        transport = await self._login(handler)
        await transport.aclose()

        credentials = seen[0]["body"]["credentials"]
        assert credentials["user"] == "admin"
        assert credentials["password"] == "admin"


class TestFailures:
    @staticmethod
    async def _call_error(handler) -> ClassifiedError:
        async with make_transport(handler) as transport:
            with pytest.raises(ClassifiedError) as exc_info:
                await transport.call("Query-2012-10-Finder", "performSearch", {})
        return exc_info.value

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_status(self, status):
        error = await self._call_error(lambda request: httpx.Response(status, text="denied"))

        assert error.category == ErrorCategory.AUTH_SESSION
        assert error.message.startswith("Authentication error")
        assert error.context["status"] == status

    @pytest.mark.asyncio
    async def test_not_found(self):
        error = await self._call_error(lambda request: httpx.Response(404))

        assert error.category == ErrorCategory.API_RESPONSE
        assert error.message == "Service not found: Query-2012-10-Finder.performSearch"

    @pytest.mark.asyncio
    async def test_server_error_keeps_body(self):
        body = {"ServiceData": {"partialErrors": [{"errorValues": [{"message": "Query failed"}]}]}}
        error = await self._call_error(lambda request: httpx.Response(500, json=body))

        assert error.category == ErrorCategory.API_RESPONSE
        assert error.message.startswith("Server error")
        assert isinstance(error.cause, ServerFault)
        assert error.cause.response["data"] == body

    @pytest.mark.asyncio
    async def test_other_status(self):
        error = await self._call_error(lambda request: httpx.Response(418))

        assert error.category == ErrorCategory.API_RESPONSE
        assert error.message.startswith("Teamcenter API error: 418")

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        error = await self._call_error(handler)

        assert error.category == ErrorCategory.API_TIMEOUT
        assert isinstance(error.cause, httpx.TimeoutException)

    @pytest.mark.asyncio
    async def test_network(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        error = await self._call_error(handler)

        assert error.category == ErrorCategory.NETWORK
        assert "connection refused" in error.message

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        error = await self._call_error(
            lambda request: httpx.Response(200, content=b"<html>", headers={"Content-Type": "text/html"})
        )

        assert error.category == ErrorCategory.DATA_PARSING
        assert error.context["responseText"] == "<html>"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise RuntimeError("handler exploded")

        error = await self._call_error(handler)

        assert error.category == ErrorCategory.API_RESPONSE
        assert "SOA client call to Query-2012-10-Finder.performSearch" in error.message


class TestCommandOverHttp:
    @pytest.mark.asyncio
    async def test_server_partial_error_reaches_result(self):
        body = {"ServiceData": {"partialErrors": [{"errorValues": [{"message": "Query failed"}]}]}}

        async with make_transport(lambda request: httpx.Response(500, json=body)) as transport:
            result = await Command(SEARCH_ITEMS, None, transport, True, {"query": "x", "limit": 5}).execute()

        assert result.error.code == "SEARCH_ERROR"
        assert result.error.message == "Query failed"

    @pytest.mark.asyncio
    async def test_search_results_over_http(self):
        body = {
            "objects": [
                {"uid": "a", "type": "Item", "props": {"object_name": {"uiValues": ["Alpha"], "dbValues": ["alpha"]}}}
            ],
            "totalFound": 1,
        }

        async with make_transport(lambda request: httpx.Response(200, json=body)) as transport:
            result = await Command(SEARCH_ITEMS, None, transport, True, {"query": "x", "limit": 5}).execute()

        assert [obj.name for obj in result.data] == ["Alpha"]


class TestSessionCookies:
    @pytest.mark.asyncio
    async def test_server_cookie_is_replayed_unchanged(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/login"):
                return httpx.Response(200, json={}, headers={"Set-Cookie": "JSESSIONID=S1; Path=/"})
            return httpx.Response(200, json={})

        async with make_transport(handler) as transport:
            await transport.call("Core-2011-06-Session", "login", {"username": "admin", "password": "admin"})
            await transport.call("Core-2008-03-Session", "getFavorites", {})

        assert seen[1].headers["Cookie"] == "JSESSIONID=S1"
        assert seen[1].headers["Authorization"] == "Session S1"

    @pytest.mark.asyncio
    async def test_clearing_session_drops_cookie(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/login"):
                return httpx.Response(200, json={}, headers={"Set-Cookie": "JSESSIONID=S1; Path=/"})
            return httpx.Response(200, json={})

        async with make_transport(handler) as transport:
            await transport.call("Core-2011-06-Session", "login", {"username": "admin", "password": "admin"})
            transport.session_id = None
            await transport.call("Core-2008-03-Session", "getFavorites", {})

        assert "Cookie" not in seen[1].headers
        assert "Authorization" not in seen[1].headers

    @pytest.mark.asyncio
    async def test_login_after_logout_takes_new_session(self):
        logins: list[httpx.Request] = []
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path.endswith("/login"):
                logins.append(request)
                if len(logins) == 1:
                    return httpx.Response(
                        200, json={"userId": "admin"}, headers={"Set-Cookie": "JSESSIONID=S1; Path=/"}
                    )
                return httpx.Response(200, json={"sessionId": "S2", "userId": "admin"})
            return httpx.Response(200, json={})

        transport = make_transport(handler)
        service = TeamcenterService(ClientConfig(endpoint=ENDPOINT), transport=transport)

        first = await service.login("admin", "admin")
        await service.logout()
        second = await service.login("admin", "admin")
        await service.get_favorites()
        await transport.aclose()

        assert first.data.session_id == "S1"
        assert "Cookie" not in logins[1].headers
        assert second.data.session_id == "S2"
        assert service.session_id == "S2"
        assert seen[-1].headers["Cookie"] == "ASP.NET_SessionId=S2"
        assert seen[-1].headers["Authorization"] == "Session S2"

    @pytest.mark.asyncio
    async def test_login_discards_previous_session(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"serverInfo": {"TcServerID": "S2", "UserID": "admin"}})

        transport = make_transport(handler, session_id="S1")
        result = await Command(
            LOGIN, None, transport, False, {"credentials": {"username": "admin", "password": "admin"}}
        ).execute()
        await transport.aclose()

        assert "Cookie" not in seen[0].headers
        assert "Authorization" not in seen[0].headers
        assert result.data.session_id == "S2"
        assert transport.session_id == "S2"

    @pytest.mark.asyncio
    async def test_restored_session_is_sent_as_cookie(self, tmp_path):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"objects": []})

        FileSessionStore(storage_dir=tmp_path).store(Session(session_id="S1", user_id="admin"))
        transport = make_transport(handler)
        service = TeamcenterService(
            ClientConfig(endpoint=ENDPOINT), transport=transport, session_store=FileSessionStore(storage_dir=tmp_path)
        )

        result = await service.search_items("ABC")
        await transport.aclose()

        assert result.ok
        assert seen[0].headers["Cookie"] == "ASP.NET_SessionId=S1"
        assert seen[0].headers["Authorization"] == "Session S1"
