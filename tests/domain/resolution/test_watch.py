from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import pytest

from tracklink.adapters.sqlalchemy.unit_of_work import SqlAlchemyIdentityUnitOfWork  # noqa: TC001
from tracklink.domain.model import ResolutionTask, TaskStatus  # noqa: TC001
from tracklink.domain.resolution import (
    NO_WORK_MESSAGE,
    ResolutionService,
    ResolutionWatcher,
    WatchStatus,
)
from tests.helpers.identities import FakeResolver, links_for, seed_tracks, spotify_id

UnitOfWorkFactory = Callable[[], SqlAlchemyIdentityUnitOfWork]


def _service(
    unit_of_work_factory: UnitOfWorkFactory, resolver: FakeResolver, *, batch_size: int = 1000
) -> ResolutionService:
    return ResolutionService(
        unit_of_work_factory=unit_of_work_factory,
        resolver=resolver,
        batch_size=batch_size,
        track_delay_seconds=0,
    )


def test_each_cycle_picks_up_remaining_tracks(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed_tracks(sqlite_unit_of_work, [1, 2, 3])
    resolver = FakeResolver({spotify_id(i): links_for(spotify_id(i)) for i in (1, 2, 3)})
    service = _service(sqlite_unit_of_work, resolver, batch_size=2)
    watcher = ResolutionWatcher(service, interval_seconds=0, max_cycles=3)

    status = asyncio.run(watcher.run())

    assert status.cycles == 3
    assert not status.running
    assert status.batch_size == 2
    assert status.last_task is not None
    assert status.last_task.message == NO_WORK_MESSAGE
    assert [task.total_tracks for task in service.list_tasks()] == [2, 1, 0]
    assert resolver.calls == [spotify_id(1), spotify_id(2), spotify_id(3)]
    assert resolver.closed == 0


def test_stop_interrupts_current_task_and_interval(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    seed_tracks(sqlite_unit_of_work, [1, 2])
    resolver = FakeResolver()
    gate = resolver.hold(spotify_id(1))
    watcher = ResolutionWatcher(_service(sqlite_unit_of_work, resolver), interval_seconds=3600)

    async def scenario() -> tuple[WatchStatus, WatchStatus]:
        run = asyncio.create_task(watcher.run())
        await gate.entered.wait()
        in_progress = watcher.status()
        watcher.stop()
        gate.release.set()
        return in_progress, await asyncio.wait_for(run, timeout=5)

    in_progress, final = asyncio.run(scenario())

    assert in_progress.running
    assert (in_progress.cycles, in_progress.interval_seconds) == (0, 3600)
    assert final.cycles == 1
    assert final.last_task is not None
    assert final.last_task.status is TaskStatus.STOPPED
    assert resolver.calls == [spotify_id(1)]


def test_failed_cycle_is_recorded_and_loop_continues(
    sqlite_unit_of_work: UnitOfWorkFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    service = _service(sqlite_unit_of_work, FakeResolver())
    watcher = ResolutionWatcher(service, interval_seconds=0, max_cycles=2)
    start = service.start_resolution
    errors_seen: list[str | None] = []

    async def flaky_start() -> ResolutionTask:
        if not errors_seen:
            errors_seen.append(None)
            raise RuntimeError("database is locked")
        errors_seen.append(watcher.status().last_error)
        return await start()

    monkeypatch.setattr(service, "start_resolution", flaky_start)

    status = asyncio.run(watcher.run())

    assert errors_seen == [None, "database is locked"]
    assert status.cycles == 2
    assert status.last_error is None
    assert status.last_task is not None
    assert status.last_task.status is TaskStatus.COMPLETED


def test_max_cycles_must_be_positive(sqlite_unit_of_work: UnitOfWorkFactory) -> None:
    with pytest.raises(ValueError, match="max_cycles"):
        ResolutionWatcher(
            _service(sqlite_unit_of_work, FakeResolver()), interval_seconds=0, max_cycles=0
        )
