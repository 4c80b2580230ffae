"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from teamcenter_client.commands import Command, Operation
from teamcenter_client.config import ClientConfig
from teamcenter_client.session_store import SessionStore


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def logger() -> logging.Logger:
    """Real logger so caplog can capture command output."""
    return logging.getLogger("tests.teamcenter")


@pytest.fixture
def transport() -> MagicMock:
    """Transport double: ``call`` is an AsyncMock returning ``{}``."""
    mock_transport = MagicMock()
    mock_transport.call = AsyncMock(return_value={})
    mock_transport.session_id = "sess-123"
    mock_transport.config = ClientConfig()
    return mock_transport


@pytest.fixture
def session_store() -> MagicMock:
    return MagicMock(spec=SessionStore)


@pytest.fixture
def make_command(logger, transport, session_store):
    """Factory building a command bound to the shared fixtures."""

    def _make(
        operation: Operation,
        is_logged_in: bool = True,
        transport_override: Any = ...,
        **params: Any,
    ) -> Command[Any]:
        return Command(
            operation,
            logger,
            transport if transport_override is ... else transport_override,
            is_logged_in,
            params,
            session_store,
        )

    return _make
