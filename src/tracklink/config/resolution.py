"""Defaults for the background resolution engine."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_float, optional_env_int

DEFAULT_BATCH_SIZE = 1000
DEFAULT_CHUNK_SIZE = 5
DEFAULT_TRACK_DELAY_SECONDS = 2.0
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_WATCH_INTERVAL_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ResolutionConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    track_delay_seconds: float = DEFAULT_TRACK_DELAY_SECONDS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    watch_interval_seconds: float = DEFAULT_WATCH_INTERVAL_SECONDS


def get_resolution_config() -> ResolutionConfig:
    return ResolutionConfig(
        batch_size=optional_env_int("RESOLUTION_BATCH_SIZE", DEFAULT_BATCH_SIZE, minimum=1),
        chunk_size=optional_env_int("RESOLUTION_CHUNK_SIZE", DEFAULT_CHUNK_SIZE, minimum=1),
        track_delay_seconds=optional_env_float(
            "RESOLUTION_TRACK_DELAY_SECONDS", DEFAULT_TRACK_DELAY_SECONDS
        ),
        history_limit=optional_env_int(
            "RESOLUTION_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT, minimum=1
        ),
        watch_interval_seconds=optional_env_float(
            "RESOLUTION_WATCH_INTERVAL_SECONDS", DEFAULT_WATCH_INTERVAL_SECONDS
        ),
    )
