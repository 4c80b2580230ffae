"""Public client facade.

``TeamcenterService`` owns a transport and a session store and exposes one
coroutine per remote operation. Each method builds a fresh
:class:`~teamcenter_client.commands.Command` and runs it through the
:class:`CommandExecutor`; callers always get a :class:`CommandResult`.

Usage:
    async with create_teamcenter_service(load_config()) as tc:
        result = await tc.login("admin", "admin")
        if result.ok:
            items = await tc.search_items("ABC")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from .commands import (
    CREATE_ITEM,
    GET_FAVORITES,
    GET_ITEM_BY_ID,
    GET_ITEM_TYPES,
    GET_LAST_CREATED_ITEMS,
    GET_LOGGED_USER_PROPERTIES,
    GET_SESSION_INFO,
    GET_USER_OWNED_ITEMS,
    GET_USER_PROPERTIES,
    LOGIN,
    LOGOUT,
    SEARCH_ITEMS,
    UPDATE_ITEM,
    Command,
    Operation,
)
from .config import ClientConfig
from .logger import ClientLogger, as_client_logger
from .session_store import SessionStore, is_valid_session
from .transport import BaseSOATransport, SOATransport, create_transport
from .types import CommandResult, Credentials, DomainObject, Session

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Runs commands with a last-resort guard.

    ``Command.execute`` already converts failures into results; anything that
    still escapes is reported as ``COMMAND_ERROR``.
    """

    def __init__(self, logger: logging.Logger | ClientLogger | None = None):
        self._log = as_client_logger(logger)

    async def execute(self, command: Command[Any]) -> CommandResult[Any]:
        try:
            return await command.execute()
        except Exception as e:
            self._log.error(f"Command execution error: {e}", exc_info=e)
            return CommandResult.failure("COMMAND_ERROR", str(e) or "Command execution failed")


class TeamcenterService:
    """Teamcenter client.

    Args:
        config: Client configuration (defaults to ``ClientConfig()``)
        transport: Transport to use; created from ``config`` when omitted
        session_store: Where sessions are kept; in-memory when omitted
        logger: Logger for all commands issued by this service
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: SOATransport | None = None,
        session_store: SessionStore | None = None,
        logger: logging.Logger | ClientLogger | None = None,
    ):
        self.config = config or ClientConfig()
        self.log = as_client_logger(logger)
        self._owns_transport = transport is None
        self.transport: SOATransport = transport or create_transport(self.config, logger=self.log)
        self.session_store = session_store or SessionStore()
        self.executor = CommandExecutor(self.log)
        self._search = replace(
            SEARCH_ITEMS,
            service=self.config.search_service,
            operation=self.config.search_operation,
        )
        self._session: Session | None = None
        self._restore_session()

    def _restore_session(self) -> None:
        stored = self.session_store.retrieve(self.log)
        if not is_valid_session(stored):
            return
        self._session = stored
        if not self.transport.session_id:
            self.transport.session_id = stored.session_id
        self.log.info(f"Restored Teamcenter session for user: {stored.user_id or '?'}")

    @property
    def is_logged_in(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def session_id(self) -> str | None:
        return self.transport.session_id

    async def _run(self, operation: Operation, **params: Any) -> CommandResult[Any]:
        command: Command[Any] = Command(
            operation,
            self.log,
            self.transport,
            self.is_logged_in,
            params,
            self.session_store,
        )
        return await self.executor.execute(command)

    # =========================================================================
    # Session
    # =========================================================================

    async def login(self, username: str, password: str) -> CommandResult[Session]:
        """Authenticate and keep the resulting session."""
        result = await self._run(LOGIN, credentials=Credentials(username=username, password=password))
        if result.ok:
            self._session = result.data
        return result

    async def logout(self) -> CommandResult[None]:
        """End the session. Local session state is dropped even on failure."""
        was_logged_in = self.is_logged_in
        result = await self._run(LOGOUT)
        if was_logged_in:
            self._session = None
        return result

    async def get_session_info(self) -> CommandResult[Any]:
        return await self._run(GET_SESSION_INFO)

    async def get_favorites(self) -> CommandResult[Any]:
        return await self._run(GET_FAVORITES)

    # =========================================================================
    # Search
    # =========================================================================

    async def search_items(
        self,
        query: str,
        type: str | None = None,
        limit: int | None = None,
    ) -> CommandResult[list[DomainObject]]:
        """Free-text search.

        Args:
            query: Name criteria
            type: Optional item type filter
            limit: Max results (1-100); ``config.default_search_limit`` when omitted
        """
        if limit is None:
            limit = self.config.default_search_limit
        return await self._run(self._search, query=query, type=type, limit=limit)

    async def get_last_created_items(self, limit: int | None = None) -> CommandResult[list[DomainObject]]:
        if limit is None:
            limit = self.config.default_search_limit
        return await self._run(GET_LAST_CREATED_ITEMS, limit=limit)

    async def get_user_owned_items(self) -> CommandResult[list[DomainObject]]:
        return await self._run(GET_USER_OWNED_ITEMS)

    # =========================================================================
    # Items
    # =========================================================================

    async def get_item_by_id(self, item_id: str) -> CommandResult[Any]:
        return await self._run(GET_ITEM_BY_ID, item_id=item_id)

    async def create_item(
        self,
        type: str,
        name: str,
        description: str = "",
        properties: Mapping[str, Any] | None = None,
    ) -> CommandResult[Any]:
        """Create an item of business object type ``type``."""
        return await self._run(
            CREATE_ITEM,
            type=type,
            name=name,
            description=description,
            properties=dict(properties or {}),
            client_id=self.config.client_id,
        )

    async def update_item(self, item_id: str, properties: Mapping[str, Any]) -> CommandResult[Any]:
        return await self._run(UPDATE_ITEM, item_id=item_id, properties=dict(properties or {}))

    async def get_item_types(self) -> CommandResult[Any]:
        return await self._run(GET_ITEM_TYPES)

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user_properties(self, uid: str, attributes: list[str] | None = None) -> CommandResult[Any]:
        return await self._run(GET_USER_PROPERTIES, uid=uid, attributes=attributes)

    async def get_logged_user_properties(self, attributes: list[str] | None = None) -> CommandResult[Any]:
        return await self._run(GET_LOGGED_USER_PROPERTIES, attributes=attributes)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """Close the transport if this service created it."""
        if self._owns_transport and isinstance(self.transport, BaseSOATransport):
            await self.transport.aclose()

    async def __aenter__(self) -> TeamcenterService:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def create_teamcenter_service(
    config: ClientConfig | None = None,
    session_store: SessionStore | None = None,
    logger: logging.Logger | ClientLogger | None = None,
) -> TeamcenterService:
    """Create a service with the transport selected by ``config.mock_mode``."""
    return TeamcenterService(config, session_store=session_store, logger=logger)
