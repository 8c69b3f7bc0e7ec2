from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict

from .models import RecommendationResult


class JobStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"


class JobNotFoundError(KeyError):
    pass


class JobStateError(RuntimeError):
    pass


class Job(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: JobStatus = JobStatus.pending
    result: RecommendationResult | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status is not JobStatus.pending


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    """
    In-memory job table.

    Jobs only move ``pending -> completed`` or ``pending -> failed``. Entries
    are replaced, never mutated, so a reader always sees a consistent job.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self) -> str:
        job_id = uuid.uuid4().hex
        now = _now()
        with self._lock:
            self._jobs[job_id] = Job(id=job_id, created_at=now, updated_at=now)
        return job_id

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def _finish(self, job_id: str, **update) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job.is_terminal:
                raise JobStateError(f"job {job_id} is already {job.status.value}")
            finished = job.model_copy(update={**update, "updated_at": _now()})
            self._jobs[job_id] = finished
            return finished

    def complete(self, job_id: str, result: RecommendationResult) -> Job:
        return self._finish(job_id, status=JobStatus.completed, result=result)

    def fail(self, job_id: str, error: str) -> Job:
        return self._finish(job_id, status=JobStatus.failed, error=error or "Job failed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
