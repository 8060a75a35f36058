"""Periodic resolution: run a task, sleep, repeat until stopped."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from tracklink.domain.resolution.cancellation import CancellationToken

if TYPE_CHECKING:
    from tracklink.domain.model import ResolutionTask
    from tracklink.domain.resolution.service import ResolutionService

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WatchStatus:
    running: bool
    interval_seconds: float
    batch_size: int
    cycles: int
    last_task: ResolutionTask | None
    last_error: str | None


class ResolutionWatcher:
    """Keep resolving newly added tracks in the background.

    Each cycle starts one task through the service and waits for it. Between
    cycles the watcher sleeps for ``interval_seconds``; ``stop`` wakes it and
    also stops the task of the current cycle.
    """

    def __init__(
        self,
        service: ResolutionService,
        *,
        interval_seconds: float,
        max_cycles: int | None = None,
    ) -> None:
        if max_cycles is not None and max_cycles < 1:
            raise ValueError("max_cycles must be at least 1")
        self._service = service
        self._interval_seconds = max(0.0, interval_seconds)
        self._max_cycles = max_cycles
        self._token = CancellationToken()
        self._running = False
        self._cycles = 0
        self._current_task_id: str | None = None
        self._last_task: ResolutionTask | None = None
        self._last_error: str | None = None

    @property
    def running(self) -> bool:
        return self._running

    def status(self) -> WatchStatus:
        return WatchStatus(
            running=self._running,
            interval_seconds=self._interval_seconds,
            batch_size=self._service.batch_size,
            cycles=self._cycles,
            last_task=self._last_task,
            last_error=self._last_error,
        )

    def stop(self) -> None:
        if self._token.cancelled:
            return
        log.info("Stopping resolution watcher after %d cycle(s)", self._cycles)
        self._token.cancel()
        if self._current_task_id is not None:
            self._service.stop_resolution(self._current_task_id)

    async def run(self) -> WatchStatus:
        """Loop until ``stop`` is called or ``max_cycles`` cycles have run."""

        if self._running:
            raise RuntimeError("Resolution watcher is already running")
        self._running = True
        log.info(
            "Resolution watcher started (every %ss, up to %d tracks per cycle)",
            self._interval_seconds,
            self._service.batch_size,
        )
        try:
            while not self._token.cancelled:
                await self._cycle()
                if self._max_cycles is not None and self._cycles >= self._max_cycles:
                    break
                if await self._token.sleep(self._interval_seconds):
                    break
        finally:
            self._running = False
            self._current_task_id = None
        log.info("Resolution watcher finished after %d cycle(s)", self._cycles)
        return self.status()

    async def _cycle(self) -> None:
        try:
            task = await self._service.start_resolution()
            self._current_task_id = task.id
            if self._token.cancelled:
                # stop() ran before the id was known
                self._service.stop_resolution(task.id)
            finished = await self._service.wait_for(task.id)
            self._last_task = finished if finished is not None else task
            self._last_error = None
            log.info("Watch cycle %d: %s", self._cycles + 1, self._last_task.message)
        except Exception as exc:
            log.exception("Watch cycle %d failed", self._cycles + 1)
            self._last_error = str(exc) or repr(exc)
        finally:
            self._current_task_id = None
            self._cycles += 1
