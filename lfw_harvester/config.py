"""
Configuration Module
====================

Harvester settings loaded from a YAML file, with environment variable
overrides (a ``.env`` file is honoured through python-dotenv).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from lfw_harvester.core.enums import StoreBackend
from lfw_harvester.core.vocabulary import DEFAULT_GRAPH

DEFAULT_IGNORED_SUPPLIERS = ["Pintafish (VLB)"]


@dataclass
class ApiConfig:
    """Local Food Works API settings."""

    base_url: str = "https://api.localfoodworks.eu"
    store_id: int = 2927  # VT Boutersem
    pickup_point_id: int = 563  # Pick up point VT Boutersem
    page_size: int = 36
    user_agent: str = "LfwHarvester/0.1"
    request_timeout: float = 30.0
    cache_dir: str | None = "~/.lfw_harvester/page-cache"
    cache_max_age: int | None = 6 * 3600  # seconds, None keeps cached pages forever

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ApiConfig:
        """Create from dictionary, using defaults for missing values."""
        if data is None:
            return cls()
        default = cls()
        max_age = data.get("cache_max_age", default.cache_max_age)
        return cls(
            base_url=data.get("base_url", default.base_url).rstrip("/"),
            store_id=int(data.get("store_id", default.store_id)),
            pickup_point_id=int(data.get("pickup_point_id", default.pickup_point_id)),
            page_size=int(data.get("page_size", default.page_size)),
            user_agent=data.get("user_agent", default.user_agent),
            request_timeout=float(data.get("request_timeout", default.request_timeout)),
            cache_dir=data.get("cache_dir", default.cache_dir),
            cache_max_age=int(max_age) if max_age is not None else None,
        )


@dataclass
class StoreConfig:
    """Triple store settings."""

    backend: StoreBackend = StoreBackend.SPARQL
    endpoint: str = "http://database:8890/sparql"
    update_endpoint: str | None = None
    graph: str = DEFAULT_GRAPH
    timeout: float = 60.0
    sudo: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> StoreConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        default = cls()
        return cls(
            backend=StoreBackend(data.get("backend", default.backend.value)),
            endpoint=data.get("endpoint", default.endpoint),
            update_endpoint=data.get("update_endpoint"),
            graph=data.get("graph", default.graph),
            timeout=float(data.get("timeout", default.timeout)),
            sudo=bool(data.get("sudo", default.sudo)),
        )


@dataclass
class ScheduleConfig:
    """Scheduled harvest settings for the background worker."""

    enabled: bool = False
    hour: int = 4
    minute: int = 0
    run_on_startup: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScheduleConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            hour=int(data.get("hour", 4)),
            minute=int(data.get("minute", 0)),
            run_on_startup=bool(data.get("run_on_startup", False)),
        )


@dataclass
class HarvestConfig:
    """Complete harvester configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    share_path: str = "/share"
    ignored_suppliers: list[str] = field(
        default_factory=lambda: list(DEFAULT_IGNORED_SUPPLIERS)
    )
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    config_path: Path | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> HarvestConfig:
        """Create from dictionary."""
        if data is None:
            return cls()
        redis = data.get("redis") or {}
        return cls(
            api=ApiConfig.from_dict(data.get("api")),
            store=StoreConfig.from_dict(data.get("store")),
            schedule=ScheduleConfig.from_dict(data.get("schedule")),
            share_path=data.get("share_path", "/share"),
            ignored_suppliers=list(
                data.get("ignored_suppliers", DEFAULT_IGNORED_SUPPLIERS)
            ),
            redis_host=redis.get("host", "localhost"),
            redis_port=int(redis.get("port", 6379)),
            redis_db=int(redis.get("db", 0)),
        )

    def apply_env(self, environ: dict[str, str] | None = None) -> None:
        """Override settings with environment variables where set."""
        env = os.environ if environ is None else environ

        if env.get("LFW_API_URL"):
            self.api.base_url = env["LFW_API_URL"].rstrip("/")
        if env.get("LFW_STORE_ID"):
            self.api.store_id = int(env["LFW_STORE_ID"])
        if env.get("LFW_PICKUP_POINT_ID"):
            self.api.pickup_point_id = int(env["LFW_PICKUP_POINT_ID"])
        if "LFW_PAGE_CACHE_DIR" in env:
            # An empty value disables the page cache
            self.api.cache_dir = env["LFW_PAGE_CACHE_DIR"] or None
        if env.get("STORE_BACKEND"):
            self.store.backend = StoreBackend(env["STORE_BACKEND"])
        if env.get("SPARQL_ENDPOINT"):
            self.store.endpoint = env["SPARQL_ENDPOINT"]
        if env.get("SPARQL_UPDATE_ENDPOINT"):
            self.store.update_endpoint = env["SPARQL_UPDATE_ENDPOINT"]
        if env.get("APPLICATION_GRAPH"):
            self.store.graph = env["APPLICATION_GRAPH"]
        if env.get("SHARE_PATH"):
            self.share_path = env["SHARE_PATH"]
        if env.get("REDIS_HOST"):
            self.redis_host = env["REDIS_HOST"]
        if env.get("REDIS_PORT"):
            self.redis_port = int(env["REDIS_PORT"])
        if env.get("REDIS_DB"):
            self.redis_db = int(env["REDIS_DB"])


def load_config(config_path: Path | str) -> HarvestConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the harvester.yaml file

    Returns:
        Parsed configuration
    """
    config_path = Path(config_path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    config = HarvestConfig.from_dict(data)
    config.config_path = config_path
    return config


# Global configuration instance
_default_config: HarvestConfig | None = None


def get_default_config() -> HarvestConfig:
    """
    Get the default configuration instance.

    Loads the file given by HARVESTER_CONFIG_PATH, or config/harvester.yaml
    relative to the project root when present, then applies environment
    overrides.

    Returns:
        The global HarvestConfig instance
    """
    global _default_config

    if _default_config is None:
        load_dotenv()

        config_path = os.environ.get("HARVESTER_CONFIG_PATH")
        if config_path:
            path = Path(config_path)
        else:
            project_root = Path(__file__).parent.parent
            path = project_root / "config" / "harvester.yaml"

        _default_config = load_config(path) if path.exists() else HarvestConfig()
        _default_config.apply_env()

    return _default_config


def reset_default_config() -> None:
    """Reset the default configuration (useful for testing)."""
    global _default_config
    _default_config = None
