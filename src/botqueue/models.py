from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .scheduler import TimerHandle


class PriorityClass(str, Enum):
    HIGH = "HIGH"
    STANDARD = "STANDARD"


class JobState(str, Enum):
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class WorkerState(str, Enum):
    IDLE = "IDLE"
    BUSY = "BUSY"


class DispatcherInvariantError(RuntimeError):
    pass


class CancellationToken:
    """Per-assignment flag checked by the deferred completion before it commits."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


@dataclass(slots=True)
class Job:
    id: int
    priority: PriorityClass
    submitted_at: datetime
    state: JobState = JobState.QUEUED
    completed_at: datetime | None = None

    def snapshot(self) -> JobSnapshot:
        return JobSnapshot(
            id=self.id,
            priority=self.priority,
            state=self.state,
            submitted_at=self.submitted_at,
            completed_at=self.completed_at,
        )


@dataclass(slots=True)
class Assignment:
    job_id: int
    token: CancellationToken = field(default_factory=CancellationToken)
    timer: TimerHandle | None = None


@dataclass(slots=True)
class Worker:
    id: int
    state: WorkerState = WorkerState.IDLE
    current_job_id: int | None = None
    assignment: Assignment | None = None

    def snapshot(self) -> WorkerSnapshot:
        return WorkerSnapshot(id=self.id, state=self.state, current_job_id=self.current_job_id)


@dataclass(frozen=True, slots=True)
class JobSnapshot:
    id: int
    priority: PriorityClass
    state: JobState
    submitted_at: datetime
    completed_at: datetime | None


@dataclass(frozen=True, slots=True)
class WorkerSnapshot:
    id: int
    state: WorkerState
    current_job_id: int | None


@dataclass(frozen=True, slots=True)
class DispatcherStatus:
    workers: int
    queued: int
    in_progress: int
    done: int
    total_jobs: int
