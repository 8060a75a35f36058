"""Public domain model surface."""

from __future__ import annotations

from tracklink.domain.model.enums import (
    REFERENCE_PLATFORM,
    TARGET_PLATFORMS,
    Platform,
    TaskStatus,
)
from tracklink.domain.model.identity import (
    PlatformIdentity,
    PlatformLink,
    Track,
    TrackId,
    UnresolvedTrack,
)
from tracklink.domain.model.task import InvalidTaskTransitionError, ResolutionTask

__all__ = [
    "REFERENCE_PLATFORM",
    "TARGET_PLATFORMS",
    "InvalidTaskTransitionError",
    "Platform",
    "PlatformIdentity",
    "PlatformLink",
    "ResolutionTask",
    "TaskStatus",
    "Track",
    "TrackId",
    "UnresolvedTrack",
]
