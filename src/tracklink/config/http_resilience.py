"""Settings shared by every outbound HTTP API client."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Literal

import httpx

from .errors import ConfigurationError

ShouldCacheHook = Callable[[object], bool]


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport retries applied by ``httpx_retries`` before a call is reported."""

    total: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    backoff_jitter: float = 1.0
    # lookups are idempotent reads
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD"})
    status_forcelist: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float

    @classmethod
    def parse(cls, value: str) -> RateLimit:
        """Parse ``"<calls>/<seconds>"``, e.g. ``"10/60"``."""

        calls_raw, sep, seconds_raw = value.partition("/")
        try:
            if not sep:
                raise ValueError(value)
            max_calls = int(calls_raw)
            per_seconds = float(seconds_raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"Rate limit must look like '<calls>/<seconds>', got {value!r}"
            ) from exc
        if max_calls <= 0 or per_seconds <= 0:
            raise ConfigurationError(f"Rate limit must be positive, got {value!r}")
        return cls(max_calls=max_calls, per_seconds=per_seconds)


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
