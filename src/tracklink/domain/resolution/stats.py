"""Read-only coverage figures for the identity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tracklink.domain.clock import utcnow
from tracklink.domain.model import REFERENCE_PLATFORM, TARGET_PLATFORMS

if TYPE_CHECKING:
    from datetime import datetime

    from tracklink.domain.clock import Clock
    from tracklink.domain.model import Platform
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWorkFactory


@dataclass(frozen=True, slots=True)
class CoverageStats:
    total_tracks: int
    per_platform_counts: dict[Platform, int]
    tracks_needing_resolution: int
    last_updated: datetime

    def coverage(self, platform: Platform) -> float:
        """Share of all tracks that have an identity on ``platform``."""

        if self.total_tracks == 0:
            return 0.0
        return self.per_platform_counts.get(platform, 0) / self.total_tracks


def coverage_stats(
    unit_of_work_factory: IdentityUnitOfWorkFactory,
    *,
    clock: Clock = utcnow,
) -> CoverageStats:
    with unit_of_work_factory() as uow:
        identities = uow.repositories.identities
        total = identities.count_tracks()
        per_platform = identities.count_tracks_by_platform()
        pending = identities.count_unresolved(
            reference=REFERENCE_PLATFORM, targets=TARGET_PLATFORMS
        )
    return CoverageStats(
        total_tracks=total,
        per_platform_counts=per_platform,
        tracks_needing_resolution=pending,
        last_updated=clock(),
    )
