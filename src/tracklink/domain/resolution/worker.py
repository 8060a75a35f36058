"""Background loop that resolves a batch of tracks for one task."""

from __future__ import annotations

from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING

from tracklink.domain.clock import utcnow
from tracklink.domain.model import TaskStatus
from tracklink.domain.ports.resolution import LinkResolutionError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracklink.domain.clock import Clock
    from tracklink.domain.model import Platform, PlatformLink, ResolutionTask, UnresolvedTrack
    from tracklink.domain.ports.resolution import LinkResolver
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWorkFactory
    from tracklink.domain.resolution.cancellation import CancellationToken

log = getLogger(__name__)


def persist_links(
    unit_of_work_factory: IdentityUnitOfWorkFactory,
    track: UnresolvedTrack,
    links: dict[Platform, PlatformLink],
) -> int:
    """Insert every missing identity for ``track`` in one transaction.

    Returns the number of rows actually written.
    """

    if not links:
        return 0
    inserted = 0
    with unit_of_work_factory() as uow:
        identities = uow.repositories.identities
        for platform, link in links.items():
            if identities.insert_if_absent(track.track_id, platform, link):
                inserted += 1
        uow.commit()
    return inserted


class ResolutionWorker:
    """Resolve tracks one at a time, pacing calls with a fixed delay.

    The worker owns no task state of its own: it advances the ``ResolutionTask``
    handed to it and gives up as soon as the token is cancelled. A track whose
    lookup was in flight at that moment is neither written nor counted. The
    resolver is borrowed and left open for the next run.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: IdentityUnitOfWorkFactory,
        resolver: LinkResolver,
        chunk_size: int = 5,
        track_delay_seconds: float = 2.0,
        clock: Clock = utcnow,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._unit_of_work_factory = unit_of_work_factory
        self._resolver = resolver
        self._chunk_size = chunk_size
        self._track_delay_seconds = track_delay_seconds
        self._clock = clock

    async def run(
        self,
        task: ResolutionTask,
        batch: Sequence[UnresolvedTrack],
        token: CancellationToken,
    ) -> None:
        try:
            await self._run(task, batch, token)
        except Exception as exc:
            log.exception("Resolution task %s failed", task.id)
            if task.is_active:
                task.transition(
                    TaskStatus.FAILED, now=self._clock(), message=str(exc) or repr(exc)
                )

    async def _run(
        self,
        task: ResolutionTask,
        batch: Sequence[UnresolvedTrack],
        token: CancellationToken,
    ) -> None:
        if token.cancelled:
            return
        task.transition(TaskStatus.PROCESSING, now=self._clock())
        log.info("Resolution task %s processing %d tracks", task.id, len(batch))

        position = 0
        for chunk in batched(batch, self._chunk_size):
            if token.cancelled:
                return
            for track in chunk:
                position += 1
                task.report_progress(
                    f"Processing track {position}/{len(batch)}: {track.label}",
                    now=self._clock(),
                )
                if not await self._process_track(task, track, token):
                    return
                if await token.sleep(self._track_delay_seconds):
                    return

        message = (
            f"Completed processing {task.processed_tracks} tracks "
            f"({task.failed_tracks} failed)"
        )
        task.transition(TaskStatus.COMPLETED, now=self._clock(), message=message)
        log.info("Resolution task %s: %s", task.id, message)

    async def _process_track(
        self,
        task: ResolutionTask,
        track: UnresolvedTrack,
        token: CancellationToken,
    ) -> bool:
        """Resolve and store one track; return ``False`` if the run was stopped."""

        try:
            links = await self._resolver.resolve(track.reference_id)
        except LinkResolutionError as exc:
            if token.cancelled:
                return False
            log.warning("Link resolution failed for track %s: %s", track.track_id, exc)
            task.record_failure(now=self._clock())
            return True
        except Exception:  # noqa: BLE001
            if token.cancelled:
                return False
            log.warning("Unexpected error resolving track %s", track.track_id, exc_info=True)
            task.record_failure(now=self._clock())
            return True

        if token.cancelled:
            log.debug("Discarding lookup for track %s after stop", track.track_id)
            return False

        try:
            inserted = persist_links(self._unit_of_work_factory, track, links)
        except Exception:  # noqa: BLE001
            log.warning("Could not store identities for track %s", track.track_id, exc_info=True)
            task.record_failure(now=self._clock())
            return True

        log.debug(
            "Track %s resolved on %d platforms, %d new identities",
            track.track_id,
            len(links),
            inserted,
        )
        task.record_success(now=self._clock())
        return True
