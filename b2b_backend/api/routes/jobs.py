"""Job posting endpoints.

``router`` is mounted under ``/business-profile`` (postings and review);
``search_router`` under ``/jobs`` (public search).
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.api.limiter import limiter
from b2b_backend.api.schemas import ApplicationReview, JobCreate, JobUpdate
from b2b_backend.db import get_db
from b2b_backend.services import jobs

router = APIRouter()
search_router = APIRouter()


@router.post("/{profile_id}/job", status_code=201)
def create_job(
    profile_id: str,
    data: JobCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Publish a job. Owner or admin only."""
    return jobs.create_job(db, profile_id, user_id, data.model_dump(exclude_none=True))


@router.get("/{profile_id}/job")
def list_jobs(profile_id: str, page: int = 1, limit: int = 10, db: Session = Depends(get_db)):
    return jobs.list_jobs(db, profile_id, page, limit)


@router.get("/{profile_id}/job/{job_id}")
def get_job(profile_id: str, job_id: str, db: Session = Depends(get_db)):
    return jobs.get_job(db, profile_id, job_id)


@router.put("/{profile_id}/job/{job_id}")
def update_job(
    profile_id: str,
    job_id: str,
    data: JobUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return jobs.update_job(db, profile_id, user_id, job_id, data.model_dump(exclude_unset=True))


@router.delete("/{profile_id}/job/{job_id}")
def delete_job(
    profile_id: str,
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return jobs.delete_job(db, profile_id, user_id, job_id)


@router.get("/{profile_id}/job/{job_id}/applications")
def job_applications(
    profile_id: str,
    job_id: str,
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Applications for a job with applicant details; ``applied`` by default."""
    return jobs.job_applications(db, profile_id, user_id, job_id, status, page, limit)


@router.patch("/{profile_id}/job/{job_id}/application/{application_id}/status")
def review_application(
    profile_id: str,
    job_id: str,
    application_id: str,
    data: ApplicationReview,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return jobs.review_application(db, profile_id, user_id, job_id, application_id, data.status)


@search_router.get("/search")
@limiter.limit("30/minute")
def search_jobs(
    request: Request,
    title: str | None = None,
    job_mode: str | None = None,
    employment_type: str | None = None,
    location: str | None = None,
    experience_min: float | None = None,
    experience_max: float | None = None,
    skills: str | None = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
):
    """Active jobs matching every given filter."""
    return jobs.search_jobs(
        db,
        title=title,
        job_mode=job_mode,
        employment_type=employment_type,
        location=location,
        experience_min=experience_min,
        experience_max=experience_max,
        skills=skills,
        page=page,
        limit=limit,
    )
