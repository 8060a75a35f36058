"""Resolution task state machine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from tracklink.domain.model.enums import TaskStatus

if TYPE_CHECKING:
    from datetime import datetime


_ALLOWED_TRANSITIONS: Final[dict[TaskStatus, frozenset[TaskStatus]]] = {
    TaskStatus.QUEUED: frozenset({TaskStatus.PROCESSING, TaskStatus.STOPPED, TaskStatus.FAILED}),
    TaskStatus.PROCESSING: frozenset(
        {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.STOPPED}
    ),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.STOPPED: frozenset(),
}


class InvalidTaskTransitionError(RuntimeError):
    """Raised when a task is moved out of a terminal state or skips a step."""


@dataclass(kw_only=True)
class ResolutionTask:
    id: str
    status: TaskStatus
    created_at: datetime
    last_updated_at: datetime
    total_tracks: int = 0
    processed_tracks: int = 0
    failed_tracks: int = 0
    message: str | None = None
    progress_detail: str | None = None

    @classmethod
    def queued(cls, task_id: str, *, total_tracks: int, now: datetime) -> ResolutionTask:
        return cls(
            id=task_id,
            status=TaskStatus.QUEUED,
            created_at=now,
            last_updated_at=now,
            total_tracks=total_tracks,
            message=f"Started processing {total_tracks} tracks",
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def attempted_tracks(self) -> int:
        return self.processed_tracks + self.failed_tracks

    def transition(self, status: TaskStatus, *, now: datetime, message: str | None = None) -> None:
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTaskTransitionError(
                f"Task {self.id} cannot move from {self.status} to {status}"
            )
        self.status = status
        self.last_updated_at = now
        if message is not None:
            self.message = message

    def record_success(self, *, now: datetime) -> None:
        self.processed_tracks += 1
        self.last_updated_at = now

    def record_failure(self, *, now: datetime) -> None:
        self.failed_tracks += 1
        self.last_updated_at = now

    def report_progress(self, detail: str, *, now: datetime) -> None:
        self.progress_detail = detail
        self.last_updated_at = now

    def snapshot(self) -> ResolutionTask:
        """Return a detached copy safe to hand to callers."""

        return replace(self)
