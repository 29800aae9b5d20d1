"""Configuration loader for Paper-Network."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

APP_NAME = "Paper-Network"
APP_VERSION = "0.1.0"


class ProxyConfig(BaseModel):
    """Proxy configuration."""

    http: str | None = None
    https: str | None = None


class RateLimits(BaseModel):
    """Rate limits per source (requests per second)."""

    semantic_scholar: float = 1  # 1 req/s with an API key
    openalex: float = 10
    arxiv: float = 0.34  # arXiv asks for one request every 3 seconds


class RetrySettings(BaseModel):
    """Retry behavior shared by every provider call."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0


class CacheSettings(BaseModel):
    """Network cache settings."""

    backend: Literal["memory", "supabase", "none"] = "memory"
    ttl_hours: float = 24
    max_entries: int = 256

    # Supabase REST backend
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    table: str = "paper_networks"


class Config(BaseModel):
    """Main configuration model."""

    # API keys
    semantic_scholar_api_key: str | None = None

    # Contact address sent in the User-Agent of every outbound call
    contact_email: str = "researcher@example.com"

    # Proxy settings
    proxy: ProxyConfig | None = None

    # Request settings
    request_timeout: float = 15
    retry: RetrySettings = Field(default_factory=RetrySettings)

    # Rate limiting
    rate_limits: RateLimits = Field(default_factory=RateLimits)

    # Minimum seconds between consecutive resolutions during a build
    resolution_interval_with_key: float = 1.0
    resolution_interval_without_key: float = 3.0

    # Network defaults
    default_depth: int = 1
    default_max_nodes: int = 200

    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("request_timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if not 10 <= value <= 15:
            raise ValueError("request_timeout must be between 10 and 15 seconds")
        return value

    @property
    def user_agent(self) -> str:
        """Client identity string declared on every outbound call."""
        return f"{APP_NAME}/{APP_VERSION} (mailto:{self.contact_email})"

    @property
    def resolution_interval(self) -> float:
        """Minimum delay between resolutions, longer without an API key."""
        if self.semantic_scholar_api_key:
            return self.resolution_interval_with_key
        return self.resolution_interval_without_key

    def get_proxy_url(self) -> str | None:
        """Get proxy URL for httpx (prefers https, falls back to http)."""
        if not self.proxy:
            return None
        return self.proxy.https or self.proxy.http


_config: Config | None = None

# Environment variables that override values from the config file
ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "SEMANTIC_SCHOLAR_API_KEY": ("semantic_scholar_api_key",),
    "PAPER_NETWORK_CONTACT_EMAIL": ("contact_email",),
    "SUPABASE_URL": ("cache", "supabase_url"),
    "SUPABASE_SERVICE_ROLE_KEY": ("cache", "supabase_service_role_key"),
}


def find_config_file() -> Path | None:
    """Find configuration file by searching multiple locations.

    Search order (first found wins):
    1. PAPER_NETWORK_CONFIG environment variable
    2. Current working directory: ./config.yaml
    3. User home directory: ~/.paper-network/config.yaml

    Returns:
        Path to config file if found, None otherwise.
    """
    env_path = os.environ.get("PAPER_NETWORK_CONFIG")
    if env_path:
        path = Path(env_path).expanduser()
        if path.exists():
            return path
        logger.warning(f"PAPER_NETWORK_CONFIG path does not exist: {env_path}")

    cwd_config = Path("config.yaml")
    if cwd_config.exists():
        return cwd_config.resolve()

    home_config = Path.home() / ".paper-network" / "config.yaml"
    if home_config.exists():
        return home_config

    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    for env_name, path in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        target = data
        for key in path[:-1]:
            target = target.setdefault(key, {})
        target[path[-1]] = value
        logger.debug(f"Using {env_name} from environment")
    return data


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file and environment.

    Args:
        config_path: Path to config file. If None, searches for config.yaml
                    in multiple locations (see find_config_file).

    Returns:
        Config object with loaded settings.
    """
    global _config

    config_path = Path(config_path).expanduser() if config_path is not None else find_config_file()

    data: dict[str, Any] = {}
    if config_path is not None and config_path.exists():
        logger.debug(f"Loading configuration from: {config_path}")
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.debug("No configuration file found, using defaults")

    _config = Config(**_apply_env_overrides(data))
    return _config


def get_config() -> Config:
    """Get the current configuration, loading if necessary."""
    global _config
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Reset the cached configuration."""
    global _config
    _config = None
