"""APScheduler jobs — re-dispatch stale pending reviews, fail stalled ones, nightly cleanup at 03:00."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytz
import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from griffin.application.services.auth_service import purge_expired_resets
from griffin.application.services.token_service import purge_expired_revocations
from griffin.config import get_settings
from griffin.domain.models.review_job import ReviewJob
from griffin.infrastructure.database import SessionLocal
from griffin.infrastructure.repositories.review_job_repository import SQLAlchemyReviewJobRepository
from griffin.workers.dispatcher import InlineDispatcher, JobDispatcher

settings = get_settings()
logger = structlog.get_logger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)

STALLED_ERROR = "Job stalled: no progress from the worker"


def requeue_stale_jobs(dispatcher: JobDispatcher | None = None) -> int:
    """Dispatch pending jobs that nobody picked up within STALE_JOB_MINUTES."""
    dispatcher = dispatcher or InlineDispatcher()
    horizon = datetime.now(timezone.utc) - timedelta(minutes=settings.STALE_JOB_MINUTES)

    db = SessionLocal()
    try:
        repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
        job_ids = [job.job_id for job in repo.find_stale_pending(horizon)]
    finally:
        db.close()

    for job_id in job_ids:
        logger.info("Re-dispatching stale review job", job_id=job_id)
        dispatcher.dispatch(job_id)
    return len(job_ids)


def fail_stalled_jobs() -> int:
    """Fail processing jobs with no progress for STALLED_JOB_MINUTES.

    A worker that died mid-review leaves its job in processing; this moves it
    to a terminal state so pollers stop waiting.
    """
    horizon = datetime.now(timezone.utc) - timedelta(minutes=settings.STALLED_JOB_MINUTES)

    db = SessionLocal()
    try:
        repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
        stalled = repo.find_stalled_processing(horizon)
        for job in stalled:
            logger.warning("Failing stalled review job", job_id=job.job_id, attempts=job.attempts)
            repo.mark_failed(job, STALLED_ERROR)
        return len(stalled)
    finally:
        db.close()


def cleanup_old_records() -> dict:
    """Delete old finished jobs and expired revocation and reset tokens."""
    cutoff = datetime.now(timezone.utc) - timedelta(days=settings.JOB_RETENTION_DAYS)
    db = SessionLocal()
    try:
        repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
        return {
            "jobs": repo.delete_old_terminal(cutoff),
            "revoked_tokens": purge_expired_revocations(db),
            "reset_tokens": purge_expired_resets(db),
        }
    finally:
        db.close()


async def stale_job_sweep():
    logger.info("Running stale job sweep", at=datetime.now(tz).strftime("%d/%m/%Y %H:%M"))
    try:
        requeued = await asyncio.to_thread(requeue_stale_jobs)
        failed = await asyncio.to_thread(fail_stalled_jobs)
        logger.info("Stale job sweep finished", requeued=requeued, failed=failed)
    except Exception:
        logger.exception("Stale job sweep failed")


async def daily_cleanup_job():
    logger.info("Running daily cleanup", at=datetime.now(tz).strftime("%d/%m/%Y %H:%M"))
    try:
        result = await asyncio.to_thread(cleanup_old_records)
        logger.info("Daily cleanup finished", **result)
    except Exception:
        logger.exception("Daily cleanup failed")


def start_scheduler():
    """Start the APScheduler with the stale-job sweep and the nightly cleanup."""
    scheduler.add_job(
        stale_job_sweep,
        trigger=IntervalTrigger(minutes=settings.STALE_JOB_MINUTES, timezone=tz),
        id="stale_job_sweep",
        name=f"Stale Job Sweep (Every {settings.STALE_JOB_MINUTES} mins)",
        replace_existing=True,
    )

    scheduler.add_job(
        daily_cleanup_job,
        trigger=CronTrigger(hour=3, minute=0, timezone=tz),
        id="daily_cleanup",
        name="Daily Cleanup (03:00)",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started", stale_job_minutes=settings.STALE_JOB_MINUTES, timezone=settings.TIMEZONE)


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
