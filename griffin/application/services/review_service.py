"""Review service — job submission, lookup, long polling and history."""

import time
import uuid
from typing import Any, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from griffin.application.services import auth_service
from griffin.config import get_settings
from griffin.core.exceptions import NotFoundError, ValidationError
from griffin.domain.models.review_job import JobStatus, ReviewJob
from griffin.domain.models.user import User
from griffin.domain.schemas.review import JobPage, JobRead, JobStats, ReviewSubmission, SubmissionAccepted
from griffin.domain.validation import (
    check_code_content,
    estimate_processing_time,
    resolve_language,
    validate_review_submission,
)
from griffin.infrastructure.repositories.review_job_repository import SQLAlchemyReviewJobRepository
from griffin.workers.dispatcher import JobDispatcher

settings = get_settings()
logger = structlog.get_logger(__name__)

MAX_WAIT_MS = 60000
DEFAULT_PRIORITY = 5


def _jobs(db: Session) -> SQLAlchemyReviewJobRepository:
    return SQLAlchemyReviewJobRepository(db, ReviewJob)


def submit_review(db: Session, user: User, payload: ReviewSubmission, dispatcher: JobDispatcher) -> SubmissionAccepted:
    violations = validate_review_submission(payload.code, payload.language, payload.filename, payload.priority)
    if violations:
        raise ValidationError("Validation failed", errors=[v.model_dump() for v in violations])

    content = check_code_content(payload.code)
    if not content.is_valid:
        raise ValidationError(
            "Code validation failed",
            errors=[{"field": "code", "message": message} for message in content.errors],
        )

    # Atomic quota claim, ForbiddenError when exhausted
    auth_service.increment_review_count(db, user)

    language = resolve_language(payload.language, payload.filename)
    job = _jobs(db).create({
        "job_id": str(uuid.uuid4()),
        "user_id": user.id,
        "code": payload.code,
        "filename": payload.filename,
        "language": language,
        "file_size": len(payload.code.encode("utf-8")),
        "priority": payload.priority or DEFAULT_PRIORITY,
        "status": JobStatus.PENDING.value,
        "progress": 0,
    })

    dispatcher.dispatch(job.job_id)
    logger.info("Review job submitted", job_id=job.job_id, user_id=user.id, language=language)

    return SubmissionAccepted(
        job_id=job.job_id,
        status=JobStatus.PENDING,
        estimated_time=estimate_processing_time(payload.code, language),
        warnings=content.warnings,
    )


def _get_owned(db: Session, user: User, job_id: str) -> ReviewJob:
    job = _jobs(db).get_for_user(job_id, user.id)
    if job is None:
        raise NotFoundError("Job not found")
    return job


def get_job(db: Session, user: User, job_id: str) -> JobRead:
    return JobRead.model_validate(_get_owned(db, user, job_id))


def wait_for_job(db: Session, user: User, job_id: str, timeout_ms: int) -> JobRead:
    """Re-read the job until it is terminal or the timeout elapses."""
    timeout_ms = max(0, min(timeout_ms, MAX_WAIT_MS))
    deadline = time.monotonic() + timeout_ms / 1000
    job = _get_owned(db, user, job_id)
    while not job.is_terminal:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        time.sleep(min(settings.JOB_POLL_INTERVAL_SECONDS, remaining))
        # Pick up commits made by the worker's own session
        db.expire(job)
    return JobRead.model_validate(job)


def list_jobs(
    db: Session,
    user: User,
    page: int = 1,
    limit: int = 10,
    status: Optional[JobStatus] = None,
    language: Optional[str] = None,
) -> JobPage:
    page_data: Dict[str, Any] = _jobs(db).list_for_user(
        user.id,
        page=page,
        limit=limit,
        status=status.value if status else None,
        language=language,
    )
    return JobPage(
        jobs=[JobRead.model_validate(job) for job in page_data["jobs"]],
        total=page_data["total"],
        page=page_data["page"],
        total_pages=page_data["total_pages"],
    )


def get_job_stats(db: Session, user: User) -> JobStats:
    return JobStats(**_jobs(db).stats_for_user(user.id))
