"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from paper_network.config import (
    APP_NAME,
    APP_VERSION,
    Config,
    ProxyConfig,
    find_config_file,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and config files."""
    for name in (
        "PAPER_NETWORK_CONFIG",
        "SEMANTIC_SCHOLAR_API_KEY",
        "PAPER_NETWORK_CONTACT_EMAIL",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_config()
    yield
    reset_config()


class TestConfigModel:
    """Tests for Config defaults and derived values."""

    def test_defaults(self):
        config = Config()

        assert config.request_timeout == 15
        assert config.retry.max_attempts == 3
        assert config.default_depth == 1
        assert config.default_max_nodes == 200
        assert config.cache.backend == "memory"
        assert config.cache.table == "paper_networks"

    def test_user_agent_carries_contact(self):
        config = Config(contact_email="lab@example.org")

        assert config.user_agent == f"{APP_NAME}/{APP_VERSION} (mailto:lab@example.org)"

    def test_timeout_bounds(self):
        Config(request_timeout=10)
        with pytest.raises(ValidationError):
            Config(request_timeout=5)
        with pytest.raises(ValidationError):
            Config(request_timeout=30)

    def test_resolution_interval_depends_on_key(self):
        assert Config().resolution_interval == 3.0
        assert Config(semantic_scholar_api_key="k").resolution_interval == 1.0

    def test_proxy_url(self):
        assert Config().get_proxy_url() is None
        assert Config(proxy=ProxyConfig(http="http://p:1")).get_proxy_url() == "http://p:1"
        assert Config(proxy=ProxyConfig(http="http://p:1", https="http://p:2")).get_proxy_url() == "http://p:2"


class TestLoadConfig:
    """Tests for load_config and friends."""

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            "semantic_scholar_api_key: file-key\n"
            "default_max_nodes: 50\n"
            "cache:\n"
            "  backend: none\n"
        )

        config = load_config(path)

        assert config.semantic_scholar_api_key == "file-key"
        assert config.default_max_nodes == 50
        assert config.cache.backend == "none"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "nope.yaml")

        assert config == Config()

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("semantic_scholar_api_key: file-key\n")
        monkeypatch.setenv("SEMANTIC_SCHOLAR_API_KEY", "env-key")
        monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")

        config = load_config(path)

        assert config.semantic_scholar_api_key == "env-key"
        assert config.cache.supabase_url == "https://project.supabase.co"
        assert config.cache.supabase_service_role_key == "service-key"

    def test_find_config_file_env(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere.yaml"
        path.write_text("{}\n")
        monkeypatch.setenv("PAPER_NETWORK_CONFIG", str(path))

        assert find_config_file() == path

    def test_find_config_file_cwd(self, tmp_path):
        (tmp_path / "config.yaml").write_text("{}\n")

        assert find_config_file() == (tmp_path / "config.yaml").resolve()

    def test_find_config_file_none(self):
        assert find_config_file() is None

    def test_get_config_is_cached(self):
        first = get_config()

        assert get_config() is first
        reset_config()
        assert get_config() is not first
