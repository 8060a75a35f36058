"""Selection of tracks that still lack target-platform identities."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from tracklink.domain.model import REFERENCE_PLATFORM, TARGET_PLATFORMS

if TYPE_CHECKING:
    from tracklink.domain.model import UnresolvedTrack
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWorkFactory

log = getLogger(__name__)

DEFAULT_SELECTION_LIMIT = 1000


def select_unresolved_tracks(
    unit_of_work_factory: IdentityUnitOfWorkFactory,
    *,
    limit: int = DEFAULT_SELECTION_LIMIT,
) -> list[UnresolvedTrack]:
    """Return tracks with a reference identity and no target identity at all.

    Tracks resolved on some but not all target platforms are not selected again.
    """

    with unit_of_work_factory() as uow:
        batch = uow.repositories.identities.find_unresolved(
            reference=REFERENCE_PLATFORM,
            targets=TARGET_PLATFORMS,
            limit=limit,
        )
    log.debug("Selected %d unresolved tracks (limit %d)", len(batch), limit)
    return batch
