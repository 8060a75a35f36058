"""In-process registry of resolution tasks and their background runs."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from tracklink.domain.clock import utcnow
from tracklink.domain.model import ResolutionTask, TaskStatus
from tracklink.domain.resolution.cancellation import CancellationToken

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tracklink.domain.clock import Clock
    from tracklink.domain.model import UnresolvedTrack
    from tracklink.domain.resolution.worker import ResolutionWorker

    type BatchSelector = Callable[[], Sequence[UnresolvedTrack]]

log = getLogger(__name__)

NO_WORK_MESSAGE = "No tracks found needing platform resolution"
DEFAULT_HISTORY_LIMIT = 50


def new_task_id() -> str:
    return f"resolution-{uuid4().hex}"


class ResolutionTaskRegistry:
    """Owns every task created in this process and at most one active run.

    Callers only ever receive copies of tasks; the live objects are advanced by
    the worker and by ``stop``. All methods must be called from the event loop
    that runs the workers.
    """

    def __init__(
        self,
        *,
        worker: ResolutionWorker,
        selector: BatchSelector,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._worker = worker
        self._selector = selector
        self._history_limit = max(1, history_limit)
        self._clock = clock
        self._id_factory = id_factory
        self._lock = asyncio.Lock()
        self._tasks: dict[str, ResolutionTask] = {}
        self._tokens: dict[str, CancellationToken] = {}
        self._runs: dict[str, asyncio.Task[None]] = {}

    async def start(self) -> ResolutionTask:
        """Start a task, or return the one already queued or processing."""

        async with self._lock:
            active = self._active_task()
            if active is not None:
                log.info("Resolution task %s already %s", active.id, active.status)
                return active.snapshot()
            await self._drain_runs()

            task_id = self._id_factory()
            now = self._clock()
            try:
                batch = list(self._selector())
            except Exception as exc:
                log.exception("Selecting tracks for task %s failed", task_id)
                return self._register_finished(task_id, TaskStatus.FAILED, str(exc) or repr(exc))

            if not batch:
                log.info(NO_WORK_MESSAGE)
                return self._register_finished(task_id, TaskStatus.COMPLETED, NO_WORK_MESSAGE)

            task = ResolutionTask.queued(task_id, total_tracks=len(batch), now=now)
            token = CancellationToken()
            self._register(task)
            self._tokens[task_id] = token
            run = asyncio.create_task(
                self._worker.run(task, batch, token), name=f"tracklink-{task_id}"
            )
            self._runs[task_id] = run
            run.add_done_callback(lambda _: self._release(task_id))
            log.info("Resolution task %s queued with %d tracks", task_id, len(batch))
            return task.snapshot()

    def stop(self, task_id: str) -> bool:
        """Request a stop; ``False`` when the task is unknown or already finished."""

        task = self._tasks.get(task_id)
        if task is None or task.status.is_terminal:
            return False
        task.transition(
            TaskStatus.STOPPED,
            now=self._clock(),
            message=(
                f"Task stopped after processing {task.processed_tracks} "
                f"of {task.total_tracks} tracks"
            ),
        )
        token = self._tokens.get(task_id)
        if token is not None:
            token.cancel()
        log.info(
            "Resolution task %s: %s (%d attempted)", task_id, task.message, task.attempted_tracks
        )
        return True

    def get(self, task_id: str) -> ResolutionTask | None:
        task = self._tasks.get(task_id)
        return task.snapshot() if task is not None else None

    def list_tasks(self) -> list[ResolutionTask]:
        return [task.snapshot() for task in self._tasks.values()]

    async def wait(self, task_id: str) -> ResolutionTask | None:
        """Wait for the background run of ``task_id`` (if any) to finish."""

        run = self._runs.get(task_id)
        if run is not None:
            await run
        return self.get(task_id)

    async def shutdown(self) -> None:
        """Stop every active task and wait for the workers to wind down."""

        for task in list(self._tasks.values()):
            if task.is_active:
                self.stop(task.id)
        runs = list(self._runs.values())
        if runs:
            await asyncio.gather(*runs)

    async def _drain_runs(self) -> None:
        """Wait for stopped runs whose in-flight lookup has not returned yet."""

        pending = [run for run in self._runs.values() if not run.done()]
        if pending:
            log.info("Waiting for %d stopped run(s) to wind down", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    def _active_task(self) -> ResolutionTask | None:
        for task in self._tasks.values():
            if task.is_active:
                return task
        return None

    def _register_finished(self, task_id: str, status: TaskStatus, message: str) -> ResolutionTask:
        now = self._clock()
        task = ResolutionTask(
            id=task_id,
            status=status,
            created_at=now,
            last_updated_at=now,
            message=message,
        )
        self._register(task)
        return task.snapshot()

    def _register(self, task: ResolutionTask) -> None:
        self._tasks[task.id] = task
        while len(self._tasks) > self._history_limit:
            evicted = next(
                (existing for existing in self._tasks.values() if not existing.is_active), None
            )
            if evicted is None:
                break
            del self._tasks[evicted.id]

    def _release(self, task_id: str) -> None:
        self._runs.pop(task_id, None)
        self._tokens.pop(task_id, None)
