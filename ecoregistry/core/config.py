# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry updater configuration - single source of truth.
YAML holds the settings. Env vars ONLY for deployment-specific locations.

- ALL configuration in plain text (YAML)
- NO hidden state - components receive the values they need explicitly
"""

import os
import tempfile
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ecoregistry.core.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "configs/ecoregistry.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable application configuration.
    All values from YAML. No hidden state.
    """

    # -- Module proxy --
    proxy_url: str = "https://proxy.golang.org"
    user_agent: str = "ecoregistry"
    http_timeout: float = 60.0
    burst: int = 10
    ingest_qps: float = 50.0
    resolve_qps: float = 200.0
    debug_requests: bool = False

    # -- Module index --
    index_url: str = "https://index.golang.org/index"
    index_page_limit: int = 0

    # -- Response cache --
    cache_enabled: bool = False
    cache_dir: str = os.path.join(tempfile.gettempdir(), "goproxy-cache")
    cache_ttl_hours: float = 24.0

    # -- Database --
    data_dir: Optional[str] = None

    # -- Update run --
    update_duration: float = 60.0
    worker_limit: int = 10
    progress_interval: int = 1000

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"

    # -- Derived paths --
    @property
    def db_path(self) -> Path:
        """SQLite database file inside the data directory."""
        if not self.data_dir:
            raise ConfigurationError("data directory not set (database.dir or ECO_DIR)")
        return Path(self.data_dir) / "db.sqlite"

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.db_path}"


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults (plus environment overrides) if file doesn't exist.

    Args:
        path: Path to the YAML file

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the file is not valid YAML
    """
    y = {}
    if Path(path).exists():
        try:
            with open(path) as f:
                y = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", config_file=path) from e
        if not isinstance(y, dict):
            raise ConfigurationError(f"Expected a mapping in {path}", config_file=path)

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()
    return Config(
        # Module proxy
        proxy_url=os.getenv("GOPROXY") or get(y, "proxy", "url", default=defaults.proxy_url),
        user_agent=get(y, "proxy", "user_agent", default=defaults.user_agent),
        http_timeout=float(get(y, "proxy", "timeout", default=defaults.http_timeout)),
        burst=int(get(y, "proxy", "burst", default=defaults.burst)),
        ingest_qps=float(get(y, "proxy", "ingest_qps", default=defaults.ingest_qps)),
        resolve_qps=float(get(y, "proxy", "resolve_qps", default=defaults.resolve_qps)),
        debug_requests=bool(get(y, "proxy", "debug", default=defaults.debug_requests)),

        # Module index
        index_url=get(y, "index", "url", default=defaults.index_url),
        index_page_limit=int(get(y, "index", "page_limit", default=defaults.index_page_limit)),

        # Response cache
        cache_enabled=bool(get(y, "cache", "enabled", default=defaults.cache_enabled)),
        cache_dir=get(y, "cache", "dir", default=defaults.cache_dir),
        cache_ttl_hours=float(get(y, "cache", "ttl_hours", default=defaults.cache_ttl_hours)),

        # Database
        data_dir=os.getenv("ECO_DIR") or get(y, "database", "dir"),

        # Update run
        update_duration=float(get(y, "update", "duration_seconds", default=defaults.update_duration)),
        worker_limit=int(get(y, "update", "worker_limit", default=defaults.worker_limit)),
        progress_interval=int(get(y, "update", "progress_interval", default=defaults.progress_interval)),

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level", default=defaults.log_level),
        log_format=get(y, "logging", "format", default=defaults.log_format),
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the entry point's config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("ECOREGISTRY_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config
