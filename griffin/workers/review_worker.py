"""Review worker — runs one review job to completion outside the request cycle."""

import time
from typing import Callable

import structlog
from sqlalchemy.orm import Session

from griffin.ai.reviewer import analyze_code
from griffin.config import get_settings
from griffin.core.exceptions import JobStateError
from griffin.domain.models.review_job import JobStatus, ReviewJob
from griffin.domain.validation import check_code_content
from griffin.infrastructure.database import SessionLocal
from griffin.infrastructure.repositories.review_job_repository import SQLAlchemyReviewJobRepository

settings = get_settings()
logger = structlog.get_logger(__name__)


def process_review_job(
    job_id: str,
    session_factory: Callable[[], Session] = SessionLocal,
    reviewer: Callable = analyze_code,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Move a pending job through processing to completed or failed.

    Opens its own session. Terminal jobs and jobs already claimed by another
    worker are left untouched.
    """
    log = logger.bind(job_id=job_id)
    db = session_factory()
    try:
        jobs = SQLAlchemyReviewJobRepository(db, ReviewJob)
        job = jobs.get_by_job_id(job_id)
        if job is None:
            log.warning("Review job not found")
            return
        if job.status != JobStatus.PENDING.value:
            log.info("Review job skipped", status=job.status)
            return

        try:
            jobs.mark_processing(job)
        except JobStateError:
            log.info("Review job claimed elsewhere")
            return

        started = time.monotonic()
        log.info("Review job started", language=job.language, file_size=job.file_size)

        try:
            jobs.update_progress(job, 10)
            findings = check_code_content(job.code).warnings
            jobs.update_progress(job, 30)

            result = None
            last_error = None
            for attempt in range(settings.REVIEW_MAX_ATTEMPTS):
                jobs.record_attempt(job)
                try:
                    result = reviewer(job.code, job.language, job.filename, findings)
                    break
                except Exception as e:
                    last_error = e
                    log.warning("Review attempt failed", attempt=attempt + 1, error=str(e))
                    if attempt + 1 < settings.REVIEW_MAX_ATTEMPTS:
                        sleep(settings.REVIEW_RETRY_DELAY_SECONDS * (2 ** attempt))

            if result is None:
                jobs.mark_failed(job, f"AI analysis failed: {last_error}")
                log.error("Review job failed", attempts=job.attempts, error=str(last_error))
                return

            jobs.update_progress(job, 90)
            processing_time = int((time.monotonic() - started) * 1000)
            jobs.mark_completed(job, result, processing_time)
            log.info("Review job completed", processing_time_ms=processing_time, attempts=job.attempts)
        except Exception as e:
            log.exception("Review job crashed")
            db.rollback()
            db.refresh(job)
            if not job.is_terminal:
                jobs.mark_failed(job, str(e) or e.__class__.__name__)
    finally:
        db.close()
