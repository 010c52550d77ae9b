from __future__ import annotations

import itertools
import logging
import threading

from .event_log import EventLog
from .models import (
    Assignment,
    DispatcherInvariantError,
    DispatcherStatus,
    Job,
    JobSnapshot,
    JobState,
    PriorityClass,
    Worker,
    WorkerSnapshot,
    WorkerState,
)
from .scheduler import Scheduler

DEFAULT_PROCESSING_SECONDS = 10.0

_PRIORITY_RANK = {PriorityClass.HIGH: 0, PriorityClass.STANDARD: 1}
_STATE_RANK = {JobState.IN_PROGRESS: 0, JobState.QUEUED: 1, JobState.DONE: 2}


class Dispatcher:
    """Owns the job sequence and the worker roster.

    Every public entry point and every completion callback runs under one
    re-entrant lock, so no two mutations of the queue or roster interleave.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        processing_seconds: float = DEFAULT_PROCESSING_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        if processing_seconds <= 0:
            raise ValueError("processing_seconds must be > 0")
        self.scheduler = scheduler
        self.processing_seconds = processing_seconds
        self.events = EventLog(scheduler.now, logger)
        self._lock = threading.RLock()
        self._jobs: list[Job] = []
        self._workers: list[Worker] = []
        self._job_ids = itertools.count(1)
        self._worker_ids = itertools.count(1)
        self._start_order = itertools.count()
        self._started: dict[int, int] = {}

    def submit_job(self, is_priority: bool) -> JobSnapshot:
        with self._lock:
            priority = PriorityClass.HIGH if is_priority else PriorityClass.STANDARD
            job = Job(id=next(self._job_ids), priority=priority, submitted_at=self.scheduler.now())
            self._jobs.append(job)
            self._resequence()
            self.events.record(
                "job_submitted",
                f"New {priority.value} Job #{job.id} added to queue",
                job_id=job.id,
                priority=priority.value,
            )
            self.assign()
            return job.snapshot()

    def add_worker(self) -> WorkerSnapshot:
        with self._lock:
            worker = Worker(id=next(self._worker_ids))
            self._workers.append(worker)
            self.events.record("worker_added", f"Worker #{worker.id} added", worker_id=worker.id)
            self.assign()
            return worker.snapshot()

    def remove_worker(self) -> WorkerSnapshot | None:
        with self._lock:
            if not self._workers:
                return None
            worker = self._workers.pop()
            self._cancel(worker)
            self.events.record("worker_removed", f"Worker #{worker.id} removed", worker_id=worker.id)
            self.assign()
            return worker.snapshot()

    def assign(self) -> None:
        with self._lock:
            while True:
                idle = [worker for worker in self._workers if worker.state is WorkerState.IDLE]
                queued = [job for job in self._jobs if job.state is JobState.QUEUED]
                pairs = list(zip(idle, queued))
                if not pairs:
                    break
                for worker, job in pairs:
                    self._start(worker, job)
                self._resequence()
            self.check_invariants()

    def get_status(self) -> DispatcherStatus:
        with self._lock:
            counts = {state: 0 for state in JobState}
            for job in self._jobs:
                counts[job.state] += 1
            return DispatcherStatus(
                workers=len(self._workers),
                queued=counts[JobState.QUEUED],
                in_progress=counts[JobState.IN_PROGRESS],
                done=counts[JobState.DONE],
                total_jobs=len(self._jobs),
            )

    def get_jobs(self) -> list[JobSnapshot]:
        with self._lock:
            return [job.snapshot() for job in self._jobs]

    def get_workers(self) -> list[WorkerSnapshot]:
        with self._lock:
            return [worker.snapshot() for worker in self._workers]

    def get_log(self) -> list[str]:
        return self.events.lines()

    def check_invariants(self) -> None:
        with self._lock:
            owners: dict[int, int] = {}
            for worker in self._workers:
                busy = worker.state is WorkerState.BUSY
                if busy != (worker.current_job_id is not None):
                    raise DispatcherInvariantError(
                        f"worker #{worker.id} is {worker.state.value} with job {worker.current_job_id}"
                    )
                if worker.current_job_id is None:
                    continue
                if worker.current_job_id in owners:
                    raise DispatcherInvariantError(
                        f"job #{worker.current_job_id} held by workers "
                        f"#{owners[worker.current_job_id]} and #{worker.id}"
                    )
                owners[worker.current_job_id] = worker.id

            for job in self._jobs:
                owned = job.id in owners
                if (job.state is JobState.IN_PROGRESS) != owned:
                    raise DispatcherInvariantError(
                        f"job #{job.id} is {job.state.value} but owned={owned}"
                    )

            keys = [self._sequence_key(job) for job in self._jobs]
            if keys != sorted(keys):
                raise DispatcherInvariantError("job sequence is out of order")

    def _start(self, worker: Worker, job: Job) -> None:
        job.state = JobState.IN_PROGRESS
        self._started[job.id] = next(self._start_order)
        assignment = Assignment(job_id=job.id)
        worker.state = WorkerState.BUSY
        worker.current_job_id = job.id
        worker.assignment = assignment
        self.events.record(
            "job_started",
            f"Worker #{worker.id} started processing Job #{job.id} ({job.priority.value})",
            worker_id=worker.id,
            job_id=job.id,
        )
        assignment.timer = self.scheduler.call_later(
            self.processing_seconds,
            lambda: self._complete(worker, job, assignment),
        )

    def _complete(self, worker: Worker, job: Job, assignment: Assignment) -> None:
        with self._lock:
            if assignment.token.cancelled:
                return
            if worker.assignment is not assignment or job.state is not JobState.IN_PROGRESS:
                raise DispatcherInvariantError(
                    f"completion for job #{job.id} does not match worker #{worker.id}"
                )
            job.state = JobState.DONE
            job.completed_at = self.scheduler.now()
            self._started.pop(job.id, None)
            self.events.record(
                "job_completed",
                f"Worker #{worker.id} completed Job #{job.id} ({job.priority.value})",
                worker_id=worker.id,
                job_id=job.id,
            )
            self._release(worker)
            self._resequence()
            self.assign()

    def _cancel(self, worker: Worker) -> None:
        assignment = worker.assignment
        if assignment is None:
            return
        assignment.token.cancel()
        if assignment.timer is not None:
            assignment.timer.cancel()
        job = self._job(assignment.job_id)
        job.state = JobState.QUEUED
        self._started.pop(job.id, None)
        self.events.record(
            "job_requeued",
            f"Worker #{worker.id} stopped processing Job #{job.id}, returned to queue",
            worker_id=worker.id,
            job_id=job.id,
        )
        self._release(worker)
        self._resequence()

    def _release(self, worker: Worker) -> None:
        worker.state = WorkerState.IDLE
        worker.current_job_id = None
        worker.assignment = None

    def _job(self, job_id: int) -> Job:
        for job in self._jobs:
            if job.id == job_id:
                return job
        raise DispatcherInvariantError(f"unknown job #{job_id}")

    def _sequence_key(self, job: Job) -> tuple[int, int, int]:
        # Within a class, jobs start in id order, so a requeued job always has a
        # lower id than every never-started job of its class.
        if job.state is JobState.IN_PROGRESS:
            return (_STATE_RANK[job.state], 0, self._started[job.id])
        if job.state is JobState.QUEUED:
            return (_STATE_RANK[job.state], _PRIORITY_RANK[job.priority], job.id)
        return (_STATE_RANK[job.state], 0, job.id)

    def _resequence(self) -> None:
        self._jobs.sort(key=self._sequence_key)
