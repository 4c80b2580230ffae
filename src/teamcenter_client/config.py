"""Client configuration.

Configuration is resolved in order: defaults, then an optional YAML file,
then ``TEAMCENTER_*`` environment variables, then explicit overrides.

Example YAML::

    endpoint: https://plm.example.com/tc/JsonRestServices
    timeout: 30
    mock_mode: false
    headers:
      X-Tenant: engineering
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .protocol import DEFAULT_CLIENT_ID, FINDER_SERVICE

logger = logging.getLogger(__name__)

ENV_PREFIX = "TEAMCENTER_"

# Environment variable suffix -> config field
_ENV_FIELDS = {
    "ENDPOINT": "endpoint",
    "TIMEOUT": "timeout",
    "MOCK_MODE": "mock_mode",
    "CLIENT_ID": "client_id",
    "DEFAULT_SEARCH_LIMIT": "default_search_limit",
    "SEARCH_SERVICE": "search_service",
    "SEARCH_OPERATION": "search_operation",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ClientConfig(BaseModel):
    """Configuration for a Teamcenter client."""

    endpoint: str = "http://localhost:7001/tc/JsonRestServices"
    timeout: float = 60.0  # seconds
    mock_mode: bool = False
    headers: dict[str, str] = Field(default_factory=dict)
    client_id: str = DEFAULT_CLIENT_ID

    # Search
    default_search_limit: int = 10
    search_service: str = FINDER_SERVICE
    search_operation: str = "performSearch"

    @field_validator("endpoint")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        raw = environ.get(f"{ENV_PREFIX}{suffix}")
        if raw is None or raw == "":
            continue
        if field_name == "mock_mode":
            overrides[field_name] = raw.strip().lower() in _TRUE_VALUES
        else:
            overrides[field_name] = raw
    return overrides


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ClientConfig:
    """Load configuration from YAML, the environment and keyword overrides.

    Args:
        path: Optional YAML file. Missing files raise FileNotFoundError.
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Values that win over every other source; None is ignored

    Returns:
        Validated ClientConfig

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the YAML root is not a mapping or a value is invalid
    """
    values: dict[str, Any] = {}

    if path is not None:
        config_path = Path(path).expanduser()
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        values.update(loaded)
        logger.debug(f"Loaded config from {config_path}")

    values.update(_env_overrides(os.environ if environ is None else environ))
    values.update({k: v for k, v in overrides.items() if v is not None})

    return ClientConfig.model_validate(values)
