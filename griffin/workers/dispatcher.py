"""Job dispatchers — hand a review job id to whatever runs the worker."""

from typing import Protocol

from fastapi import BackgroundTasks

from griffin.workers.review_worker import process_review_job


class JobDispatcher(Protocol):
    def dispatch(self, job_id: str) -> None:
        ...


class BackgroundTaskDispatcher:
    """Runs the worker on FastAPI background tasks, after the response is sent."""

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def dispatch(self, job_id: str) -> None:
        self.background_tasks.add_task(process_review_job, job_id)


class InlineDispatcher:
    """Runs the worker immediately in the calling thread. Used by the scheduler."""

    def dispatch(self, job_id: str) -> None:
        process_review_job(job_id)
