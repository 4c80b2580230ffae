"""Client type definitions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, model_validator

T = TypeVar("T")


class ErrorLevel(str, Enum):
    """Severity attached to a command error."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class CommandError(BaseModel):
    """Wire-facing error returned by every command."""

    code: str
    level: ErrorLevel = ErrorLevel.ERROR
    message: str


class CommandResult(BaseModel, Generic[T]):
    """Uniform command result: either ``data`` or ``error``, never both."""

    data: T | None = None
    error: CommandError | None = None

    @model_validator(mode="after")
    def _check_exclusive(self) -> CommandResult[T]:
        if self.data is not None and self.error is not None:
            raise ValueError("CommandResult cannot carry both data and error")
        return self

    @property
    def ok(self) -> bool:
        """True when no error is present."""
        return self.error is None

    @classmethod
    def success(cls, data: Any = None) -> CommandResult[Any]:
        return cls(data=data)

    @classmethod
    def failure(
        cls,
        code: str,
        message: str,
        level: ErrorLevel = ErrorLevel.ERROR,
    ) -> CommandResult[Any]:
        return cls(error=CommandError(code=code, level=level, message=message))


class Credentials(BaseModel):
    """Username/password pair for ``Session.login``."""

    username: str = ""
    password: str = Field(default="", repr=False)


class Session(BaseModel):
    """Session information returned from a successful login."""

    session_id: str = ""
    user_id: str = ""
    user_name: str = ""
    group: str | None = None
    role: str | None = None
    group_id: str | None = None
    group_name: str | None = None
    role_id: str | None = None
    role_name: str | None = None
    status: str | None = None
    soa_version: str | None = None
    locale: str | None = None
    server_info: dict[str, Any] | None = None


class DomainObject(BaseModel):
    """A Teamcenter business object in caller-facing shape."""

    id: str
    type: str
    name: str = ""
    description: str = ""
    revision: str = ""
    owner: str = ""
    status: str = "In Work"
    title: str = ""
    modified_date: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Decoded search response."""

    objects: list[dict[str, Any]] = Field(default_factory=list)
    total_found: int = 0
    total_loaded: int = 0
    search_filter_map: dict[str, Any] | None = None
    service_data: dict[str, Any] | None = None
