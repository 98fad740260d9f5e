"""In-memory job registry."""

import logging
from collections.abc import Callable
from uuid import uuid4

from ..core.types import Job, JobOptions, JobStatus, utcnow

logger = logging.getLogger(__name__)

JobListener = Callable[[Job], None]


class JobStore:
    """Holds job handles for the lifetime of the process.

    The pipeline runner is the only writer; everything else reads. Listeners
    are called synchronously after every update, which is how progress is
    observed while a job runs.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._listeners: list[JobListener] = []

    def create_job(self, url: str, options: JobOptions | None = None) -> Job:
        """Register a new queued job."""
        job = Job(id=uuid4().hex, url=url, options=options or JobOptions())
        self._jobs[job.id] = job
        logger.info(f"Created job {job.id} for {url}")
        return job

    def add_job(self, job: Job) -> Job:
        """Register an externally built job handle."""
        self._jobs[job.id] = job
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[Job]:
        """All jobs, newest first."""
        return sorted(self._jobs.values(), key=lambda j: j.created_at, reverse=True)

    def add_listener(self, listener: JobListener) -> None:
        self._listeners.append(listener)

    def update_job(self, job_id: str, **patch: object) -> Job | None:
        """Apply a patch to a job handle in place.

        Progress never decreases and a terminal status is never left.

        Returns:
            The updated job, or None if the id is unknown
        """
        job = self._jobs.get(job_id)
        if job is None:
            return None

        if job.status.is_terminal and "status" in patch and patch["status"] != job.status:
            logger.warning(f"Ignoring status change for finished job {job_id}")
            patch.pop("status")

        for key, value in patch.items():
            if key == "progress":
                value = max(job.progress, int(value))  # type: ignore[call-overload]
            setattr(job, key, value)
        job.updated_at = utcnow()

        for listener in self._listeners:
            try:
                listener(job)
            except Exception as e:
                logger.warning(f"Job listener failed for {job_id}: {e}")
        return job


def summarize_job(job: Job) -> str:
    """One-line outcome of a job, suitable for reports.

    A failed job is described as a failure, never as an empty result.
    """
    if job.status == JobStatus.ERROR:
        return f"Analysis failed during {job.stage}: {job.error or 'unknown error'}"
    if job.status == JobStatus.DONE and job.outputs is not None:
        outputs = job.outputs
        return (
            f"{len(outputs.issues)} issues across {len(outputs.pages)} pages; "
            f"{len(outputs.journeys)} journeys analyzed."
        )
    return f"Analysis {job.status.value} ({job.stage}, {job.progress}%)"
