"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class Platform(StrEnum):
    SPOTIFY = "spotify"
    APPLE_MUSIC = "apple_music"
    YOUTUBE = "youtube"
    AMAZON_MUSIC = "amazon_music"
    TIDAL = "tidal"
    DEEZER = "deezer"


REFERENCE_PLATFORM: Final[Platform] = Platform.SPOTIFY

TARGET_PLATFORMS: Final[tuple[Platform, ...]] = tuple(
    platform for platform in Platform if platform is not REFERENCE_PLATFORM
)


class TaskStatus(StrEnum):
    """Lifecycle of a resolution task."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    STOPPED = "stopped"

    @property
    def is_active(self) -> bool:
        return self in {TaskStatus.QUEUED, TaskStatus.PROCESSING}

    @property
    def is_terminal(self) -> bool:
        return not self.is_active
