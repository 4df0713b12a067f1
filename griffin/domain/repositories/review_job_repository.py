"""
Review Job Repository Interface.
Status changes go through the mark_* methods, which enforce the job state machine.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from griffin.domain.models.review_job import ReviewJob
from griffin.domain.repositories.base import BaseRepository


class ReviewJobRepository(BaseRepository[ReviewJob]):
    """Interface for ReviewJob-specific operations."""

    def get_by_job_id(self, job_id: str) -> Optional[ReviewJob]:
        """Get a job by its public id, regardless of owner."""
        ...

    def get_for_user(self, job_id: str, user_id: int) -> Optional[ReviewJob]:
        """Get a job only if it belongs to the given user."""
        ...

    def list_for_user(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Paginated job history, newest first."""
        ...

    def stats_for_user(self, user_id: int) -> Dict[str, int]:
        """Job counts per status."""
        ...

    def mark_processing(self, job: ReviewJob) -> ReviewJob:
        ...

    def record_attempt(self, job: ReviewJob) -> ReviewJob:
        ...

    def update_progress(self, job: ReviewJob, progress: int) -> ReviewJob:
        ...

    def mark_completed(self, job: ReviewJob, result: Dict[str, Any], processing_time: int) -> ReviewJob:
        ...

    def mark_failed(self, job: ReviewJob, error: str) -> ReviewJob:
        ...

    def find_stale_pending(self, older_than: datetime) -> List[ReviewJob]:
        """Pending jobs created before the given instant."""
        ...

    def find_stalled_processing(self, older_than: datetime) -> List[ReviewJob]:
        """Processing jobs not written to since the given instant."""
        ...

    def delete_old_terminal(self, before: datetime) -> int:
        """Delete completed/failed jobs finished before the given instant."""
        ...
