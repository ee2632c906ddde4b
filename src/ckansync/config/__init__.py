"""Application configuration helpers."""

from __future__ import annotations

from .ckan import CkanConfig, get_ckan_config, get_payload_resilience
from .errors import ConfigurationError, MissingConfigurationError, PluginLoadError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .loader import RunConfig, load_run_config
from .logging import configure_logging
from .storage import (
    CollectionNames,
    DatabaseConfig,
    StorageConfig,
    get_database_uri,
    get_http_cache_path,
    get_storage_config,
)
from .sync import SyncConfig

__all__ = [
    "CacheConfig",
    "CkanConfig",
    "CollectionNames",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PluginLoadError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RunConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_ckan_config",
    "get_database_uri",
    "get_http_cache_path",
    "get_payload_resilience",
    "get_storage_config",
    "load_run_config",
]
