"""Ports for persisting tracks and platform identities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracklink.domain.model import (
        Platform,
        PlatformIdentity,
        PlatformLink,
        Track,
        TrackId,
        UnresolvedTrack,
    )


@runtime_checkable
class IdentityRepository(Protocol):
    """Access pattern the resolution engine needs from the identity store."""

    def add_track(self, track: Track) -> bool:
        """Store a track row unless one with the same id exists."""
        ...

    def insert_if_absent(self, track_id: TrackId, platform: Platform, link: PlatformLink) -> bool:
        """Insert a mapping unless one exists for (track_id, platform).

        Returns whether a new row was written.
        """
        ...

    def exists(self, track_id: TrackId, platform: Platform) -> bool: ...

    def identities_for(self, track_id: TrackId) -> Sequence[PlatformIdentity]: ...

    def lookup_reference(
        self, track_id: TrackId, *, reference: Platform
    ) -> UnresolvedTrack | None: ...

    def find_unresolved(
        self,
        *,
        reference: Platform,
        targets: Sequence[Platform],
        limit: int,
    ) -> list[UnresolvedTrack]: ...

    def count_tracks(self) -> int: ...

    def count_tracks_by_platform(self) -> dict[Platform, int]: ...

    def count_unresolved(self, *, reference: Platform, targets: Sequence[Platform]) -> int: ...
