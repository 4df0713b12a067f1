"""
API Dependencies.
"""

from fastapi import BackgroundTasks

from griffin.workers.dispatcher import BackgroundTaskDispatcher, JobDispatcher


def get_job_dispatcher(background_tasks: BackgroundTasks) -> JobDispatcher:
    """Get the dispatcher that runs review jobs after the response is sent."""
    return BackgroundTaskDispatcher(background_tasks)
