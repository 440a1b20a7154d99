"""Tests for client configuration loading."""

import json

import pytest

from lt_open_data.config import (
    DEFAULT_BASE_URL,
    DEFAULT_SCOPES,
    ClientConfig,
    RetryConfig,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "LT_DATA_BASE_URL",
        "LT_DATA_AUTH_URL",
        "LT_DATA_CLIENT_ID",
        "LT_DATA_CLIENT_SECRET",
        "LT_DATA_SCOPES",
        "LT_DATA_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestClientConfig:
    """Tests for defaults and environment overrides."""

    def test_defaults(self, clean_env):
        config = ClientConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.scopes == list(DEFAULT_SCOPES)
        assert config.timeout == 30.0
        assert not config.has_credentials
        assert config.retry == RetryConfig()
        assert config.discovery.concurrency == 8
        assert config.discovery.min_request_interval_ms == 50

    def test_environment(self, clean_env):
        clean_env.setenv("LT_DATA_BASE_URL", "https://example.test/")
        clean_env.setenv("LT_DATA_CLIENT_ID", "id")
        clean_env.setenv("LT_DATA_CLIENT_SECRET", "secret")
        clean_env.setenv("LT_DATA_SCOPES", "spinta_getall,spinta_changes")
        clean_env.setenv("LT_DATA_TIMEOUT", "5")

        config = ClientConfig()

        assert config.base_url == "https://example.test"
        assert config.has_credentials
        assert config.scopes == ["spinta_getall", "spinta_changes"]
        assert config.timeout == 5.0

    def test_id_without_secret(self, clean_env):
        assert not ClientConfig(client_id="id").has_credentials


class TestConfigFiles:
    """Tests for dict, YAML and JSON loading."""

    def test_from_dict(self, clean_env):
        config = ClientConfig.from_dict({
            "base_url": "https://data.test",
            "scopes": "spinta_getall spinta_search",
            "retry": {"page_size": 500, "max_attempts": 2},
            "discovery": {"concurrency": 4},
        })
        assert config.base_url == "https://data.test"
        assert config.scopes == ["spinta_getall", "spinta_search"]
        assert config.retry.page_size == 500
        assert config.retry.max_attempts == 2
        assert config.retry.initial_backoff_ms == 1000
        assert config.discovery.concurrency == 4
        assert config.discovery.min_request_interval_ms == 50

    def test_from_dict_does_not_mutate_input(self, clean_env):
        data = {"retry": {"no_retry": True}}
        ClientConfig.from_dict(data)
        assert data == {"retry": {"no_retry": True}}

    def test_from_yaml(self, clean_env, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "base_url: https://yaml.test/\n"
            "client_id: abc\n"
            "client_secret: def\n"
            "retry:\n"
            "  no_retry: true\n"
        )
        config = ClientConfig.from_yaml(str(path))
        assert config.base_url == "https://yaml.test"
        assert config.has_credentials
        assert config.retry.no_retry is True

    def test_from_empty_yaml(self, clean_env, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ClientConfig.from_yaml(str(path)).base_url == DEFAULT_BASE_URL

    def test_from_json(self, clean_env, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"timeout": 12, "discovery": {"min_request_interval_ms": 0}}))
        config = ClientConfig.from_json(str(path))
        assert config.timeout == 12
        assert config.discovery.min_request_interval_ms == 0
