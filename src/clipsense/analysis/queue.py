"""Background job queue that tracks analysis runs to a terminal state."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Generic, TypeVar

from clipsense.base.exceptions import AnalysisError

__all__ = ["JobState", "AnalysisJobStatus", "JobOutcome", "EnqueuedJob", "AnalysisJobQueue"]

logger = logging.getLogger(__name__)

TInput = TypeVar("TInput")
TResult = TypeVar("TResult")


class JobState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass(frozen=True)
class AnalysisJobStatus:
    """Snapshot of one job. Timestamps are epoch milliseconds."""

    id: str
    status: JobState
    created_at: int
    started_at: int | None = None
    finished_at: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"id": self.id, "status": self.status.value, "createdAt": self.created_at}
        if self.started_at is not None:
            data["startedAt"] = self.started_at
        if self.finished_at is not None:
            data["finishedAt"] = self.finished_at
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class JobOutcome(Generic[TResult]):
    """Result of a finished job: either `value` or `error` is set."""

    job_id: str
    value: TResult | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EnqueuedJob(Generic[TResult]):
    id: str
    future: Future[JobOutcome[TResult]]


@dataclass(frozen=True)
class _JobRecord(Generic[TResult]):
    status: AnalysisJobStatus
    result: TResult | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


class AnalysisJobQueue(Generic[TInput, TResult]):
    """Runs jobs on worker threads and keeps their status and result.

    With the default single worker, jobs run one at a time in submission order.
    A job's status and result are stored as one record, replaced under a lock,
    so readers never see a completed status without its result.
    """

    def __init__(self, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="clipsense-analysis")
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._records: dict[str, _JobRecord[TResult]] = {}

    def enqueue(self, job_input: TInput, runner: Callable[[TInput], TResult]) -> Future[JobOutcome[TResult]]:
        return self.enqueue_with_id(job_input, runner).future

    def enqueue_with_id(self, job_input: TInput, runner: Callable[[TInput], TResult]) -> EnqueuedJob[TResult]:
        """Schedule `runner(job_input)` and return the new job id immediately.

        The returned future never raises: failures are reported through
        `JobOutcome.error` and the job status.
        """
        with self._lock:
            job_id = f"job-{next(self._counter)}"
            self._records[job_id] = _JobRecord(
                status=AnalysisJobStatus(id=job_id, status=JobState.PENDING, created_at=_now_ms())
            )

        future = self._executor.submit(self._run, job_id, job_input, runner)
        return EnqueuedJob(id=job_id, future=future)

    def _run(self, job_id: str, job_input: TInput, runner: Callable[[TInput], TResult]) -> JobOutcome[TResult]:
        self._update(job_id, status=JobState.RUNNING, started_at=_now_ms())
        logger.info("Analysis job %s started", job_id)

        try:
            result = runner(job_input)
        except Exception as exc:
            error = exc if isinstance(exc, AnalysisError) else AnalysisError(str(exc) or type(exc).__name__)
            self._update(job_id, status=JobState.FAILED, finished_at=_now_ms(), error=error.message)
            logger.warning("Analysis job %s failed: %s", job_id, error.message)
            return JobOutcome(job_id=job_id, error=error)

        self._update(job_id, status=JobState.COMPLETED, finished_at=_now_ms(), result=result)
        logger.info("Analysis job %s completed", job_id)
        return JobOutcome(job_id=job_id, value=result)

    def _update(self, job_id: str, *, result: TResult | None = None, **changes: object) -> None:
        with self._lock:
            record = self._records[job_id]
            if record.status.status.is_terminal:
                return
            self._records[job_id] = _JobRecord(
                status=replace(record.status, **changes),  # type: ignore[arg-type]
                result=result if result is not None else record.result,
            )

    def get_status(self, job_id: str) -> AnalysisJobStatus | None:
        with self._lock:
            record = self._records.get(job_id)
        return record.status if record else None

    def get_result(self, job_id: str) -> TResult | None:
        """Return the job's result, or None unless the job has completed."""
        with self._lock:
            record = self._records.get(job_id)
        if record is None or record.status.status is not JobState.COMPLETED:
            return None
        return record.result

    def list_statuses(self) -> list[AnalysisJobStatus]:
        with self._lock:
            return [record.status for record in self._records.values()]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
