import json
import uuid

import pytest
from langchain_core.language_models import FakeListChatModel

from conftest import SAMPLE_REVIEW

from griffin.ai.reviewer import analyze_code
from griffin.application.services import auth_service
from griffin.core.exceptions import JobStateError
from griffin.domain.models.review_job import JobStatus, ReviewJob
from griffin.domain.schemas.auth import RegisterRequest
from griffin.infrastructure.repositories.review_job_repository import SQLAlchemyReviewJobRepository
from griffin.workers.review_worker import process_review_job


@pytest.fixture
def job(db):
    user = auth_service.register_user(
        db, RegisterRequest(username="erin", email="erin@example.com", password="secret123"),
    )
    job = ReviewJob(
        job_id=str(uuid.uuid4()),
        user_id=user.id,
        code="def add(a, b):\n    return a + b\n",
        filename="add.py",
        language="python",
        file_size=31,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def reload(db, job):
    db.expire_all()
    return db.query(ReviewJob).filter(ReviewJob.job_id == job.job_id).one()


def test_worker_completes_job_with_llm_review(db, job):
    llm = FakeListChatModel(responses=["```json\n" + json.dumps(SAMPLE_REVIEW) + "\n```"])

    def reviewer(code, language, filename, findings):
        return analyze_code(code, language, filename, findings, llm=llm)

    process_review_job(job.job_id, reviewer=reviewer)

    done = reload(db, job)
    assert done.status == JobStatus.COMPLETED.value
    assert done.progress == 100
    assert done.result["summary"] == SAMPLE_REVIEW["summary"]
    assert done.error is None
    assert done.attempts == 1
    assert done.completed_at is not None


def test_worker_retries_then_succeeds(db, job):
    calls = []
    sleeps = []

    def flaky(code, language, filename, findings):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("provider hiccup")
        return dict(SAMPLE_REVIEW)

    process_review_job(job.job_id, reviewer=flaky, sleep=sleeps.append)

    done = reload(db, job)
    assert done.status == JobStatus.COMPLETED.value
    assert done.attempts == 2
    assert len(sleeps) == 1


def test_worker_marks_job_failed_after_max_attempts(db, job):
    def broken(*args):
        raise RuntimeError("model unavailable")

    process_review_job(job.job_id, reviewer=broken, sleep=lambda seconds: None)

    failed = reload(db, job)
    assert failed.status == JobStatus.FAILED.value
    assert "model unavailable" in failed.error
    assert failed.result is None
    assert failed.attempts == 2


def test_worker_ignores_unknown_job(db):
    process_review_job("no-such-job", reviewer=lambda *a: dict(SAMPLE_REVIEW))


def test_worker_leaves_terminal_job_alone(db, job):
    repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
    repo.mark_processing(job)
    repo.mark_failed(job, "earlier failure")

    process_review_job(job.job_id, reviewer=lambda *a: dict(SAMPLE_REVIEW))
    assert reload(db, job).status == JobStatus.FAILED.value


def test_state_machine_rejects_illegal_transitions(db, job):
    repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
    with pytest.raises(JobStateError):
        repo.mark_completed(job, dict(SAMPLE_REVIEW), 10)
    with pytest.raises(JobStateError):
        repo.update_progress(job, 50)

    repo.mark_processing(job)
    with pytest.raises(JobStateError):
        repo.mark_processing(job)

    repo.mark_completed(job, dict(SAMPLE_REVIEW), 10)
    with pytest.raises(JobStateError):
        repo.mark_failed(job, "too late")


def test_pending_job_can_fail_directly(db, job):
    repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
    repo.mark_failed(job, "worker could not start")
    assert job.status == JobStatus.FAILED.value


def test_progress_only_moves_forward(db, job):
    repo = SQLAlchemyReviewJobRepository(db, ReviewJob)
    repo.mark_processing(job)
    repo.update_progress(job, 30)
    repo.update_progress(job, 10)
    assert job.progress == 30
