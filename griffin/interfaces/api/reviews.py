"""Review API routes — submit code, poll job status, job history."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from griffin.application.services import review_service
from griffin.domain.models.review_job import JobStatus
from griffin.domain.models.user import User
from griffin.domain.schemas.review import ReviewSubmission
from griffin.infrastructure.database import get_db
from griffin.interfaces.api.deps import get_current_user
from griffin.interfaces.deps import get_job_dispatcher
from griffin.workers.dispatcher import JobDispatcher

router = APIRouter(prefix="/api/review", tags=["Review"])


@router.post("/submit", status_code=status.HTTP_202_ACCEPTED)
def submit_review(
    body: ReviewSubmission,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
):
    accepted = review_service.submit_review(db, user, body, dispatcher)
    response = {
        "success": True,
        "message": "Code review job submitted successfully",
        "jobId": accepted.job_id,
        "data": {
            "jobId": accepted.job_id,
            "status": accepted.status.value,
            "estimatedTime": accepted.estimated_time,
        },
    }
    if accepted.warnings:
        response["warnings"] = accepted.warnings
    return response


@router.get("/jobs/{job_id}/status")
def get_job_status(
    job_id: str,
    timeout: Optional[int] = Query(None, ge=0, le=review_service.MAX_WAIT_MS, description="Long-poll budget in ms"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current job snapshot. With `timeout`, waits for a terminal state first."""
    if timeout:
        job = review_service.wait_for_job(db, user, job_id, timeout)
    else:
        job = review_service.get_job(db, user, job_id)
    return {"success": True, "data": job.model_dump(by_alias=True, mode="json")}


@router.get("/jobs/{job_id}/status/immediate")
def get_job_status_immediate(
    job_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    job = review_service.get_job(db, user, job_id)
    return {"success": True, "data": job.model_dump(by_alias=True, mode="json")}


@router.get("/jobs")
def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    status: Optional[JobStatus] = Query(None),
    language: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    jobs = review_service.list_jobs(db, user, page=page, limit=limit, status=status, language=language)
    return {"success": True, "data": jobs.model_dump(by_alias=True, mode="json")}


@router.get("/stats")
def get_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    stats = review_service.get_job_stats(db, user)
    return {"success": True, "data": stats.model_dump(by_alias=True, mode="json")}
