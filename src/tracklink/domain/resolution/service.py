"""Control surface over the resolution engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from tracklink.domain.clock import utcnow
from tracklink.domain.model import REFERENCE_PLATFORM
from tracklink.domain.resolution.registry import (
    DEFAULT_HISTORY_LIMIT,
    ResolutionTaskRegistry,
    new_task_id,
)
from tracklink.domain.resolution.selector import DEFAULT_SELECTION_LIMIT, select_unresolved_tracks
from tracklink.domain.resolution.stats import CoverageStats, coverage_stats
from tracklink.domain.resolution.worker import ResolutionWorker, persist_links

if TYPE_CHECKING:
    from collections.abc import Callable

    from tracklink.domain.clock import Clock
    from tracklink.domain.model import Platform, PlatformLink, ResolutionTask, TrackId
    from tracklink.domain.ports.resolution import LinkResolver
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWorkFactory

log = getLogger(__name__)


class TrackNotFoundError(LookupError):
    """Raised when a track has no reference identity to resolve from."""


@dataclass(frozen=True, slots=True)
class TrackResolutionResult:
    track_id: TrackId
    platforms: dict[Platform, PlatformLink] = field(default_factory=dict)
    inserted: int = 0


class ResolutionService:
    """Entry point used by the CLI and any outer transport layer."""

    def __init__(
        self,
        *,
        unit_of_work_factory: IdentityUnitOfWorkFactory,
        resolver: LinkResolver,
        batch_size: int = DEFAULT_SELECTION_LIMIT,
        chunk_size: int = 5,
        track_delay_seconds: float = 2.0,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._resolver = resolver
        self._clock = clock
        self.batch_size = batch_size
        worker = ResolutionWorker(
            unit_of_work_factory=unit_of_work_factory,
            resolver=resolver,
            chunk_size=chunk_size,
            track_delay_seconds=track_delay_seconds,
            clock=clock,
        )
        selector = partial(select_unresolved_tracks, unit_of_work_factory, limit=batch_size)
        self.registry = ResolutionTaskRegistry(
            worker=worker,
            selector=selector,
            history_limit=history_limit,
            clock=clock,
            id_factory=id_factory,
        )

    async def start_resolution(self) -> ResolutionTask:
        return await self.registry.start()

    def stop_resolution(self, task_id: str) -> bool:
        return self.registry.stop(task_id)

    def get_task(self, task_id: str) -> ResolutionTask | None:
        return self.registry.get(task_id)

    def list_tasks(self) -> list[ResolutionTask]:
        return self.registry.list_tasks()

    def get_coverage_stats(self) -> CoverageStats:
        return coverage_stats(self._unit_of_work_factory, clock=self._clock)

    async def wait_for(self, task_id: str) -> ResolutionTask | None:
        return await self.registry.wait(task_id)

    async def resolve_track(self, track_id: TrackId) -> TrackResolutionResult:
        """Resolve a single track right away, outside the task registry.

        Raises ``TrackNotFoundError`` if the track has no reference identity and
        lets ``LinkResolutionError`` propagate.
        """

        with self._unit_of_work_factory() as uow:
            track = uow.repositories.identities.lookup_reference(
                track_id, reference=REFERENCE_PLATFORM
            )
        if track is None:
            raise TrackNotFoundError(
                f"Track {track_id} has no {REFERENCE_PLATFORM} identity to resolve from"
            )

        links = await self._resolver.resolve(track.reference_id)
        inserted = persist_links(self._unit_of_work_factory, track, links)
        log.info(
            "Resolved %s on %d platforms (%d new identities)", track.label, len(links), inserted
        )
        return TrackResolutionResult(track_id=track_id, platforms=links, inserted=inserted)

    async def aclose(self) -> None:
        await self.registry.shutdown()
        await self._resolver.aclose()
