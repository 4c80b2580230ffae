"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from teamcenter_client.config import ClientConfig, load_config


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()

        assert config.endpoint == "http://localhost:7001/tc/JsonRestServices"
        assert config.timeout == 60.0
        assert config.mock_mode is False
        assert config.default_search_limit == 10
        assert config.search_service == "Query-2012-10-Finder"
        assert config.search_operation == "performSearch"

    def test_trailing_slash_stripped(self):
        assert ClientConfig(endpoint="https://tc.example.com/tc/JsonRestServices/").endpoint == (
            "https://tc.example.com/tc/JsonRestServices"
        )

    @pytest.mark.parametrize("timeout", [0, -5])
    def test_timeout_must_be_positive(self, timeout):
        with pytest.raises(ValidationError):
            ClientConfig(timeout=timeout)


class TestLoadConfig:
    def test_no_sources(self):
        assert load_config(environ={}) == ClientConfig()

    def test_yaml_file(self, tmp_path: Path):
        path = tmp_path / "teamcenter.yaml"
        path.write_text(
            "endpoint: https://plm.example.com/tc/JsonRestServices\n"
            "timeout: 30\n"
            "headers:\n"
            "  X-Tenant: engineering\n"
        )

        config = load_config(path, environ={})

        assert config.endpoint == "https://plm.example.com/tc/JsonRestServices"
        assert config.timeout == 30
        assert config.headers == {"X-Tenant": "engineering"}

    def test_empty_yaml_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path, environ={}) == ClientConfig()

    def test_yaml_root_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path, environ={})

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml", environ={})

    def test_environment_overrides_file(self, tmp_path: Path):
        path = tmp_path / "teamcenter.yaml"
        path.write_text("timeout: 30\nmock_mode: false\n")
        environ = {
            "TEAMCENTER_TIMEOUT": "5",
            "TEAMCENTER_MOCK_MODE": "yes",
            "TEAMCENTER_DEFAULT_SEARCH_LIMIT": "25",
            "TEAMCENTER_SEARCH_SERVICE": "Query-2010-04-SavedQuery",
            "TEAMCENTER_ENDPOINT": "",
        }

        config = load_config(path, environ=environ)

        assert config.timeout == 5.0
        assert config.mock_mode is True
        assert config.default_search_limit == 25
        assert config.search_service == "Query-2010-04-SavedQuery"
        assert config.endpoint == "http://localhost:7001/tc/JsonRestServices"

    def test_overrides_win_and_none_is_ignored(self):
        config = load_config(
            environ={"TEAMCENTER_ENDPOINT": "http://env/tc"},
            endpoint="http://override/tc",
            mock_mode=None,
        )

        assert config.endpoint == "http://override/tc"
        assert config.mock_mode is False

    def test_invalid_environment_value(self):
        with pytest.raises(ValidationError):
            load_config(environ={"TEAMCENTER_TIMEOUT": "soon"})
