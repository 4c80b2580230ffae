"""Teamcenter client - async client for Teamcenter SOA JSON services.

Provides two transport modes:
- http: JSON over HTTP to a Teamcenter web tier (httpx)
- mock: In-memory canned server for tests and demos

Every operation returns a CommandResult carrying either ``data`` or ``error``.
"""

from .commands import Command, Operation
from .config import ClientConfig, load_config
from .errors import (
    ClassifiedError,
    ErrorCategory,
    ServerFault,
    extract_error_message,
    handle_api_error,
    handle_auth_error,
    handle_data_error,
    handle_network_error,
)
from .logger import ClientLogger
from .service import CommandExecutor, TeamcenterService, create_teamcenter_service
from .session_store import FileSessionStore, SessionStore
from .transport import (
    BaseSOATransport,
    HTTPSOATransport,
    MockSOATransport,
    SOATransport,
    create_http_transport,
    create_mock_transport,
    create_transport,
)
from .types import CommandError, CommandResult, Credentials, DomainObject, ErrorLevel, Session

__all__ = [
    # Service facade
    "TeamcenterService",
    "CommandExecutor",
    "create_teamcenter_service",
    # Commands
    "Command",
    "Operation",
    # Configuration
    "ClientConfig",
    "load_config",
    # Transport Protocol & Base
    "SOATransport",
    "BaseSOATransport",
    # Transport Implementations
    "HTTPSOATransport",
    "MockSOATransport",
    # Transport Factory Functions
    "create_http_transport",
    "create_mock_transport",
    "create_transport",
    # Session persistence
    "SessionStore",
    "FileSessionStore",
    # Errors
    "ClassifiedError",
    "ErrorCategory",
    "ServerFault",
    "extract_error_message",
    "handle_api_error",
    "handle_auth_error",
    "handle_data_error",
    "handle_network_error",
    # Logging
    "ClientLogger",
    # Types
    "CommandResult",
    "CommandError",
    "ErrorLevel",
    "Credentials",
    "DomainObject",
    "Session",
]
