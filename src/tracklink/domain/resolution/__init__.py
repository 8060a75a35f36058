"""Background resolution of cross-platform track identities."""

from __future__ import annotations

from .cancellation import CancellationToken
from .registry import NO_WORK_MESSAGE, ResolutionTaskRegistry, new_task_id
from .selector import select_unresolved_tracks
from .service import ResolutionService, TrackNotFoundError, TrackResolutionResult
from .stats import CoverageStats, coverage_stats
from .watch import ResolutionWatcher, WatchStatus
from .worker import ResolutionWorker, persist_links

__all__ = [
    "NO_WORK_MESSAGE",
    "CancellationToken",
    "CoverageStats",
    "ResolutionService",
    "ResolutionTaskRegistry",
    "ResolutionWatcher",
    "ResolutionWorker",
    "TrackNotFoundError",
    "TrackResolutionResult",
    "WatchStatus",
    "coverage_stats",
    "new_task_id",
    "persist_links",
    "select_unresolved_tracks",
]
