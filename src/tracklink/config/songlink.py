"""song.link (Odesli) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_float, optional_env_var
from .errors import ConfigurationError
from .http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    ShouldCacheHook,
)

DEFAULT_SONGLINK_BASE_URL = "https://api.song.link/v1-alpha.1"
SONGLINK_TIMEOUT_SECONDS = 15.0
SONGLINK_HEADERS = {"Accept": "application/json", "User-Agent": "tracklink"}

# Transport-level only; a lookup that still fails is counted as a failed track.
SONGLINK_RETRY_POLICY = RetryPolicy(
    total=2,
    backoff_factor=1.0,
    status_forcelist=frozenset({429, 503}),
)


@dataclass(frozen=True, slots=True)
class SongLinkConfig:
    resilience: ResilienceConfig
    api_key: str | None = None
    user_country: str | None = None
    song_if_single: bool = True


def _cache_from_env(cache_predicate: ShouldCacheHook | None) -> CacheConfig | None:
    backend = optional_env_var("SONGLINK_HTTP_CACHE")
    if backend is None or backend.lower() in {"0", "off", "none", "false"}:
        return None
    if backend == "memory":
        return CacheConfig(backend="memory", should_cache=cache_predicate)
    if backend == "sqlite":
        return CacheConfig(backend="sqlite", should_cache=cache_predicate)
    raise ConfigurationError(f"SONGLINK_HTTP_CACHE must be 'memory' or 'sqlite', got {backend!r}")


def get_songlink_config(*, cache_predicate: ShouldCacheHook | None = None) -> SongLinkConfig:
    rate_limit = optional_env_var("SONGLINK_RATE_LIMIT")
    resilience = ResilienceConfig(
        name="songlink",
        base_url=optional_env_var("SONGLINK_BASE_URL") or DEFAULT_SONGLINK_BASE_URL,
        timeout_seconds=optional_env_float(
            "SONGLINK_TIMEOUT_SECONDS", SONGLINK_TIMEOUT_SECONDS, minimum=0.1
        ),
        retry=SONGLINK_RETRY_POLICY,
        ratelimit=RateLimit.parse(rate_limit) if rate_limit else None,
        cache=_cache_from_env(cache_predicate),
        default_headers=SONGLINK_HEADERS,
    )
    return SongLinkConfig(
        resilience=resilience,
        api_key=optional_env_var("SONGLINK_API_KEY"),
        user_country=optional_env_var("SONGLINK_USER_COUNTRY"),
    )
