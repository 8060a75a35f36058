"""Tracks and their per-platform identities.

A track is owned by the surrounding playlist system; this package only reads
it. Platform identities are written once when discovered and never updated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from tracklink.domain.model.enums import Platform


type TrackId = int


@dataclass(eq=False, kw_only=True)
class Track:
    id: TrackId
    title: str | None = None


@dataclass(eq=False, kw_only=True)
class PlatformIdentity:
    """At most one per (track_id, platform)."""

    track_id: TrackId
    platform: Platform
    platform_id: str
    platform_url: str | None = None

    id: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PlatformLink:
    """Identifier and canonical URL of a track on one platform."""

    platform_id: str
    platform_url: str | None = None


@dataclass(frozen=True, slots=True)
class UnresolvedTrack:
    """A track known on the reference platform but on none of the targets."""

    track_id: TrackId
    reference_id: str
    title: str | None = None

    @property
    def label(self) -> str:
        return self.title or f"track {self.track_id}"
