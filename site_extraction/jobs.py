from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel

from site_extraction.schemas.responses import AnalysisResult


class JobStatus(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


_ACTIVE = (JobStatus.pending, JobStatus.running)


class Job(BaseModel):
    job_id: str
    status: JobStatus
    created_at: datetime
    finished_at: datetime | None = None
    base_url: str | None = None
    result: AnalysisResult | None = None
    error: str | None = None


class JobStore:
    """In-memory analysis jobs. Finished jobs are evicted oldest-finished first."""

    def __init__(self, max_jobs: int = 200) -> None:
        self._jobs: dict[str, Job] = {}
        self._max_jobs = max_jobs

    def create_job(self, base_url: str | None = None) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex[:12],
            status=JobStatus.pending,
            created_at=datetime.now(timezone.utc),
            base_url=base_url,
        )
        self._jobs[job.job_id] = job
        self._evict()
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def active_job_for(self, base_url: str) -> Job | None:
        return next(
            (j for j in self._jobs.values() if j.base_url == base_url and j.status in _ACTIVE),
            None,
        )

    def mark_running(self, job_id: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.running

    def finish(
        self,
        job_id: str,
        *,
        result: AnalysisResult | None = None,
        error: str | None = None,
    ) -> None:
        """Completed when ``error`` is None, failed otherwise."""
        if job := self._jobs.get(job_id):
            job.status = JobStatus.failed if error is not None else JobStatus.completed
            job.result = result
            job.error = error
            job.finished_at = datetime.now(timezone.utc)

    def _evict(self) -> None:
        # Active jobs are never dropped, so the store may briefly exceed max_jobs
        finished = sorted(
            (j for j in self._jobs.values() if j.finished_at is not None),
            key=lambda j: j.finished_at,
        )
        for job in finished[: max(0, len(self._jobs) - self._max_jobs)]:
            del self._jobs[job.job_id]
