"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from logging import getLogger
from signal import SIGINT, SIGTERM
from typing import TYPE_CHECKING

from tracklink.adapters.songlink import SongLinkResolver, should_cache_payload
from tracklink.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    is_started,
    startup,
)
from tracklink.config import get_resolution_config, get_songlink_config
from tracklink.domain.model import REFERENCE_PLATFORM, PlatformLink, Track
from tracklink.domain.resolution import ResolutionService, ResolutionWatcher

if TYPE_CHECKING:
    from tracklink.config import ResolutionConfig
    from tracklink.domain.model import ResolutionTask, TrackId
    from tracklink.domain.ports.resolution import LinkResolver
    from tracklink.domain.ports.unit_of_work import IdentityUnitOfWorkFactory
    from tracklink.domain.resolution import WatchStatus

log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_resolution_service(
    *,
    resolver: LinkResolver | None = None,
    unit_of_work_factory: IdentityUnitOfWorkFactory | None = None,
    config: ResolutionConfig | None = None,
) -> ResolutionService:
    """Wire the resolution engine to the configured adapters.

    Call once per process; the returned service owns the task registry.
    """

    if unit_of_work_factory is None:
        _ensure_started()
        unit_of_work_factory = SqlAlchemyIdentityUnitOfWork
    effective_config = config or get_resolution_config()
    effective_resolver = resolver or SongLinkResolver(
        config=get_songlink_config(cache_predicate=should_cache_payload)
    )
    log.debug(
        "Resolution engine: batch_size=%s, chunk_size=%s, delay=%ss, history=%s",
        effective_config.batch_size,
        effective_config.chunk_size,
        effective_config.track_delay_seconds,
        effective_config.history_limit,
    )
    return ResolutionService(
        unit_of_work_factory=unit_of_work_factory,
        resolver=effective_resolver,
        batch_size=effective_config.batch_size,
        chunk_size=effective_config.chunk_size,
        track_delay_seconds=effective_config.track_delay_seconds,
        history_limit=effective_config.history_limit,
    )


async def run_resolution(service: ResolutionService) -> ResolutionTask:
    """Start a resolution task and wait until it reaches a terminal state."""

    task = await service.start_resolution()
    log.info("Resolution task %s: %s", task.id, task.message)
    finished = await service.wait_for(task.id)
    return finished if finished is not None else task


def add_track(
    *,
    track_id: TrackId,
    spotify_id: str,
    title: str | None = None,
    unit_of_work_factory: IdentityUnitOfWorkFactory | None = None,
) -> bool:
    """Register a track and its reference identity; ``False`` if already known."""

    if unit_of_work_factory is None:
        _ensure_started()
        unit_of_work_factory = SqlAlchemyIdentityUnitOfWork
    with unit_of_work_factory() as uow:
        identities = uow.repositories.identities
        identities.add_track(Track(id=track_id, title=title))
        created = identities.insert_if_absent(
            track_id, REFERENCE_PLATFORM, PlatformLink(platform_id=spotify_id)
        )
        uow.commit()
    if created:
        log.info("Registered track %s with %s id %s", track_id, REFERENCE_PLATFORM, spotify_id)
    return created


async def watch_resolution(
    service: ResolutionService,
    *,
    interval_seconds: float | None = None,
    max_cycles: int | None = None,
    handle_signals: bool = False,
) -> WatchStatus:
    """Resolve periodically until SIGINT/SIGTERM (with ``handle_signals``) or ``max_cycles``."""

    if interval_seconds is None:
        interval_seconds = get_resolution_config().watch_interval_seconds
    watcher = ResolutionWatcher(service, interval_seconds=interval_seconds, max_cycles=max_cycles)
    loop = asyncio.get_running_loop()
    signals = (SIGINT, SIGTERM) if handle_signals else ()
    for signum in signals:
        # not available on Windows event loops
        with suppress(NotImplementedError):
            loop.add_signal_handler(signum, watcher.stop)
    try:
        return await watcher.run()
    finally:
        for signum in signals:
            with suppress(NotImplementedError):
                loop.remove_signal_handler(signum)
