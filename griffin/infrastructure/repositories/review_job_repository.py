"""
SQLAlchemy Implementation of Review Job Repository.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import func

from griffin.core.exceptions import JobStateError
from griffin.domain.models.review_job import TERMINAL_STATUSES, JobStatus, ReviewJob
from griffin.domain.repositories.review_job_repository import ReviewJobRepository
from griffin.infrastructure.repositories.base_repository import SQLAlchemyRepository

logger = structlog.get_logger(__name__)


class SQLAlchemyReviewJobRepository(SQLAlchemyRepository[ReviewJob], ReviewJobRepository):
    """ReviewJob repository implementation using SQLAlchemy."""

    def get_by_job_id(self, job_id: str) -> Optional[ReviewJob]:
        return self.db.query(ReviewJob).filter(ReviewJob.job_id == job_id).first()

    def get_for_user(self, job_id: str, user_id: int) -> Optional[ReviewJob]:
        return (
            self.db.query(ReviewJob)
            .filter(ReviewJob.job_id == job_id, ReviewJob.user_id == user_id)
            .first()
        )

    def list_for_user(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        status: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = self.db.query(ReviewJob).filter(ReviewJob.user_id == user_id)
        if status:
            query = query.filter(ReviewJob.status == status)
        if language:
            query = query.filter(ReviewJob.language == language)

        total = query.count()
        jobs = (
            query.order_by(ReviewJob.created_at.desc(), ReviewJob.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "jobs": jobs,
            "total": total,
            "page": page,
            "total_pages": (total + limit - 1) // limit,
        }

    def stats_for_user(self, user_id: int) -> Dict[str, int]:
        rows = (
            self.db.query(ReviewJob.status, func.count(ReviewJob.id))
            .filter(ReviewJob.user_id == user_id)
            .group_by(ReviewJob.status)
            .all()
        )
        stats = {status.value: 0 for status in JobStatus}
        for status, count in rows:
            stats[status] = count
        stats["total"] = sum(stats.values())
        return stats

    # --- State machine ---

    def _transition(self, job: ReviewJob, new_status: JobStatus) -> None:
        if not job.can_transition_to(new_status):
            raise JobStateError(
                f"Cannot move job from {job.status} to {new_status.value}",
                details={"job_id": job.job_id, "from": job.status, "to": new_status.value},
            )
        job.status = new_status.value

    def _save(self, job: ReviewJob) -> ReviewJob:
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return job

    def mark_processing(self, job: ReviewJob) -> ReviewJob:
        """Claim a pending job. Only one caller can win the claim."""
        if not job.can_transition_to(JobStatus.PROCESSING):
            raise JobStateError(
                f"Cannot move job from {job.status} to processing",
                details={"job_id": job.job_id, "from": job.status, "to": JobStatus.PROCESSING.value},
            )
        claimed = (
            self.db.query(ReviewJob)
            .filter(ReviewJob.id == job.id, ReviewJob.status == job.status)
            .update({ReviewJob.status: JobStatus.PROCESSING.value}, synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(job)
        if not claimed:
            raise JobStateError("Job was already claimed", details={"job_id": job.job_id, "status": job.status})
        return job

    def record_attempt(self, job: ReviewJob) -> ReviewJob:
        job.attempts = (job.attempts or 0) + 1
        return self._save(job)

    def update_progress(self, job: ReviewJob, progress: int) -> ReviewJob:
        if job.status != JobStatus.PROCESSING.value:
            raise JobStateError(
                "Progress can only change while processing",
                details={"job_id": job.job_id, "status": job.status},
            )
        job.progress = max(job.progress or 0, min(100, progress))
        return self._save(job)

    def mark_completed(self, job: ReviewJob, result: Dict[str, Any], processing_time: int) -> ReviewJob:
        self._transition(job, JobStatus.COMPLETED)
        job.result = result
        job.error = None
        job.progress = 100
        job.processing_time = processing_time
        job.completed_at = datetime.now(timezone.utc)
        return self._save(job)

    def mark_failed(self, job: ReviewJob, error: str) -> ReviewJob:
        self._transition(job, JobStatus.FAILED)
        job.result = None
        job.error = error
        job.completed_at = datetime.now(timezone.utc)
        return self._save(job)

    # --- Maintenance ---

    def find_stale_pending(self, older_than: datetime) -> List[ReviewJob]:
        return (
            self.db.query(ReviewJob)
            .filter(ReviewJob.status == JobStatus.PENDING.value, ReviewJob.created_at < older_than)
            .order_by(ReviewJob.priority.desc(), ReviewJob.created_at.asc())
            .all()
        )

    def find_stalled_processing(self, older_than: datetime) -> List[ReviewJob]:
        """Processing jobs whose last write is older than the horizon."""
        return (
            self.db.query(ReviewJob)
            .filter(
                ReviewJob.status == JobStatus.PROCESSING.value,
                func.coalesce(ReviewJob.updated_at, ReviewJob.created_at) < older_than,
            )
            .all()
        )

    def delete_old_terminal(self, before: datetime) -> int:
        deleted = (
            self.db.query(ReviewJob)
            .filter(
                ReviewJob.status.in_([status.value for status in TERMINAL_STATUSES]),
                ReviewJob.completed_at < before,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Old review jobs deleted", count=deleted)
        return deleted
