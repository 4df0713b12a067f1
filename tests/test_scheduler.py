import uuid
from datetime import datetime, timedelta, timezone

from conftest import RecordingDispatcher

from griffin.application.services import auth_service
from griffin.domain.models.password_reset_token import PasswordResetToken
from griffin.domain.models.review_job import JobStatus, ReviewJob
from griffin.domain.schemas.auth import RegisterRequest
from griffin.scheduler.jobs import STALLED_ERROR, cleanup_old_records, fail_stalled_jobs, requeue_stale_jobs
from griffin.workers.review_worker import process_review_job


def make_user(db):
    return auth_service.register_user(
        db, RegisterRequest(username="grace", email="grace@example.com", password="secret123"),
    )


def add_job(db, user, **fields):
    job = ReviewJob(job_id=str(uuid.uuid4()), user_id=user.id, code="print('hi there')", language="python", **fields)
    db.add(job)
    db.commit()
    return job


def test_requeue_stale_jobs_dispatches_old_pending_only(db):
    user = make_user(db)
    now = datetime.now(timezone.utc)
    stale = add_job(db, user, created_at=now - timedelta(hours=1))
    add_job(db, user, created_at=now)
    add_job(db, user, created_at=now - timedelta(hours=1), status=JobStatus.COMPLETED.value)

    dispatcher = RecordingDispatcher()
    assert requeue_stale_jobs(dispatcher) == 1
    assert dispatcher.job_ids == [stale.job_id]


def test_stalled_processing_jobs_are_failed(db):
    user = make_user(db)
    now = datetime.now(timezone.utc)
    stalled = add_job(
        db, user, status=JobStatus.PROCESSING.value, progress=30,
        created_at=now - timedelta(hours=2), updated_at=now - timedelta(hours=1),
    )
    active = add_job(
        db, user, status=JobStatus.PROCESSING.value, progress=30,
        created_at=now - timedelta(hours=2), updated_at=now,
    )

    assert fail_stalled_jobs() == 1

    db.expire_all()
    assert stalled.status == JobStatus.FAILED.value
    assert stalled.error == STALLED_ERROR
    assert stalled.completed_at is not None
    assert active.status == JobStatus.PROCESSING.value

    # The failed job is terminal now; neither a re-run nor a second sweep touches it
    process_review_job(stalled.job_id, reviewer=lambda *args, **kwargs: {})
    assert fail_stalled_jobs() == 0
    db.expire_all()
    assert stalled.status == JobStatus.FAILED.value


def test_cleanup_removes_old_finished_jobs_and_expired_resets(db):
    user = make_user(db)
    now = datetime.now(timezone.utc)
    add_job(db, user, status=JobStatus.COMPLETED.value, completed_at=now - timedelta(days=45))
    recent = add_job(db, user, status=JobStatus.FAILED.value, completed_at=now - timedelta(days=1))
    pending = add_job(db, user)

    auth_service.create_password_reset(db, "grace@example.com")
    db.query(PasswordResetToken).update({PasswordResetToken.expires_at: now - timedelta(minutes=1)})
    db.commit()

    result = cleanup_old_records()

    assert result["jobs"] == 1
    assert result["reset_tokens"] == 1
    db.expire_all()
    remaining = {job.job_id for job in db.query(ReviewJob).all()}
    assert remaining == {recent.job_id, pending.job_id}
