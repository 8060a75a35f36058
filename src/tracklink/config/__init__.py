"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_float, optional_env_int, optional_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .resolution import ResolutionConfig, get_resolution_config
from .songlink import SongLinkConfig, get_songlink_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResolutionConfig",
    "RetryPolicy",
    "SongLinkConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_resolution_config",
    "get_songlink_config",
    "get_storage_config",
    "optional_env_float",
    "optional_env_int",
    "optional_env_var",
]
