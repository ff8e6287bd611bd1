"""
Job postings published by business profiles, public job search and the
review side of applications.
"""

import logging

from sqlalchemy.orm import Session

from b2b_backend.db import Job, JobApplication
from b2b_backend.db.tables import utcnow
from b2b_backend.errors import (
    ApplicationNotFoundError,
    DuplicateJobError,
    JobNotFoundError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging
from b2b_backend.services.business_profiles import get_page, require_write_access
from b2b_backend.services.people import user_summaries

logger = logging.getLogger(__name__)

JOB_STATUSES = ("active", "inactive", "closed")
EMPLOYMENT_TYPES = ("full_time", "part_time")
JOB_MODES = ("onsite", "remote", "hybrid")
APPLICATION_STATUSES = ("applied", "selected", "rejected")
REVIEW_STATUSES = ("selected", "rejected")
JOB_FIELDS = ("title", "job_description", "employment_type", "job_mode", "status", "location", "experience_level",
              "skills")
NON_NULL_FIELDS = ("title", "job_description", "status", "location", "experience_level", "skills")

EXPERIENCE_FLOOR = 0
EXPERIENCE_CEILING = 999


def serialize_job(job: Job, company_name: str | None = None) -> dict:
    data = {
        "id": job.id,
        "company_id": job.company_id,
        "created_by_id": job.created_by_id,
        "title": job.title,
        "job_description": job.job_description,
        "employment_type": job.employment_type,
        "job_mode": job.job_mode,
        "status": job.status,
        "location": job.location or {},
        "experience_level": job.experience_level or {},
        "skills": job.skills or [],
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }
    if company_name is not None:
        data["company_name"] = company_name
    return data


def _signature(title, location, experience_level, employment_type, job_mode) -> tuple:
    return (
        (title or "").strip().lower(),
        tuple(sorted((location or {}).items())),
        tuple(sorted((experience_level or {}).items())),
        employment_type,
        job_mode,
    )


def _check_duplicate(db: Session, profile_id: str, fields: dict, exclude_id: str | None = None):
    wanted = _signature(
        fields.get("title"),
        fields.get("location"),
        fields.get("experience_level"),
        fields.get("employment_type"),
        fields.get("job_mode"),
    )
    for job in db.query(Job).filter(Job.company_id == profile_id).all():
        if job.id == exclude_id:
            continue
        if _signature(job.title, job.location, job.experience_level, job.employment_type, job.job_mode) == wanted:
            raise DuplicateJobError()


def _check_fields(fields: dict):
    """Explicit nulls on required columns and blank titles are rejected."""
    errors = [
        {"field": key, "message": f"{key} cannot be null"}
        for key in NON_NULL_FIELDS
        if key in fields and fields[key] is None
    ]
    if "title" in fields and fields["title"] is not None:
        fields["title"] = fields["title"].strip()
        if not fields["title"]:
            errors.append({"field": "title", "message": "Title cannot be empty"})
    if errors:
        raise ValidationFailedError(errors[0]["message"], errors)


def _get_job(db: Session, profile_id: str, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id, Job.company_id == profile_id).first()
    if not job:
        raise JobNotFoundError()
    return job


def create_job(db: Session, profile_id: str, user_id: str, fields: dict) -> dict:
    require_write_access(db, profile_id, user_id)
    fields = {k: v for k, v in fields.items() if k in JOB_FIELDS}
    fields.setdefault("title", None)
    _check_fields(fields)
    _check_duplicate(db, profile_id, fields)

    job = Job(company_id=profile_id, created_by_id=user_id, **fields)
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info(f"Job {job.id} created", extra={"user_id": user_id, "profile_id": profile_id})
    return serialize_job(job)


def list_jobs(db: Session, profile_id: str, page: int = 1, limit: int = 10) -> dict:
    get_page(db, profile_id)
    page, limit = paging.clamp(page, limit, default_limit=10)
    query = db.query(Job).filter(Job.company_id == profile_id)
    total = query.count()
    jobs = query.order_by(Job.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {"jobs": [serialize_job(j) for j in jobs], "total": total, "page": page, "limit": limit}


def get_job(db: Session, profile_id: str, job_id: str) -> dict:
    page = get_page(db, profile_id)
    return serialize_job(_get_job(db, profile_id, job_id), page.company_name)


def update_job(db: Session, profile_id: str, user_id: str, job_id: str, changes: dict) -> dict:
    require_write_access(db, profile_id, user_id)
    job = _get_job(db, profile_id, job_id)
    changes = {k: v for k, v in changes.items() if k in JOB_FIELDS}
    if not changes:
        raise single_field_error("body", "At least one field must be provided for update", "No fields to update")
    _check_fields(changes)

    merged = {key: getattr(job, key) for key in JOB_FIELDS}
    merged.update(changes)
    _check_duplicate(db, profile_id, merged, exclude_id=job.id)

    for key, value in changes.items():
        setattr(job, key, value)
    job.updated_at = utcnow()
    db.commit()
    db.refresh(job)
    logger.info(f"Job {job.id} updated", extra={"user_id": user_id, "profile_id": profile_id})
    return serialize_job(job)


def delete_job(db: Session, profile_id: str, user_id: str, job_id: str) -> dict:
    require_write_access(db, profile_id, user_id)
    job = _get_job(db, profile_id, job_id)
    db.delete(job)
    db.commit()
    logger.info(f"Job {job_id} deleted", extra={"user_id": user_id, "profile_id": profile_id})
    return {"job_id": job_id, "deleted": True}


# Search


def _experience_bounds(job: Job) -> tuple[float, float]:
    level = job.experience_level or {}
    low = level.get("min")
    high = level.get("max")
    return (
        EXPERIENCE_FLOOR if low is None else float(low),
        EXPERIENCE_CEILING if high is None else float(high),
    )


def _location_matches(job: Job, term: str) -> bool:
    location = job.location or {}
    return any(term in str(location.get(key) or "").lower() for key in ("city", "state", "country"))


def search_jobs(
    db: Session,
    title: str | None = None,
    job_mode: str | None = None,
    employment_type: str | None = None,
    location: str | None = None,
    experience_min: float | None = None,
    experience_max: float | None = None,
    skills: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """Active jobs matching every given filter, newest first."""
    errors = []
    if job_mode and job_mode not in JOB_MODES:
        errors.append({"field": "job_mode", "message": "Invalid job_mode value. Must be: onsite, remote, or hybrid"})
    if employment_type and employment_type not in EMPLOYMENT_TYPES:
        errors.append(
            {"field": "employment_type", "message": "Invalid employment_type value. Must be: full_time or part_time"}
        )
    if experience_min is not None and experience_max is not None and experience_min > experience_max:
        errors.append(
            {"field": "experience_range", "message": "experience_min cannot be greater than experience_max"}
        )
    if page is not None and page < 1:
        errors.append({"field": "page", "message": "page must be a positive number"})
    if limit is not None and not 1 <= limit <= 100:
        errors.append({"field": "limit", "message": "limit must be between 1 and 100"})
    if errors:
        raise ValidationFailedError(errors[0]["message"], errors)

    query = db.query(Job).filter(Job.status == "active")
    if job_mode:
        query = query.filter(Job.job_mode == job_mode)
    if employment_type:
        query = query.filter(Job.employment_type == employment_type)
    candidates = query.order_by(Job.created_at.desc()).all()

    title_term = (title or "").strip().lower()
    location_term = (location or "").strip().lower()
    wanted_skills = {s.strip().lower() for s in (skills or "").split(",") if s.strip()}
    check_experience = experience_min is not None or experience_max is not None
    low = EXPERIENCE_FLOOR if experience_min is None else experience_min
    high = EXPERIENCE_CEILING if experience_max is None else experience_max

    matches = []
    for job in candidates:
        if title_term and title_term not in job.title.lower():
            continue
        if location_term and not _location_matches(job, location_term):
            continue
        if check_experience:
            job_low, job_high = _experience_bounds(job)
            if job_low > high or job_high < low:
                continue
        if wanted_skills and not wanted_skills & {str(s).lower() for s in job.skills or []}:
            continue
        matches.append(job)

    page, limit = paging.clamp(page, limit)
    return {
        "jobs": [serialize_job(j) for j in paging.window(matches, page, limit)],
        "total": len(matches),
        "page": page,
        "limit": limit,
    }


# Application review


def job_applications(
    db: Session, profile_id: str, user_id: str, job_id: str, status: str | None = None, page: int = 1, limit: int = 20
) -> dict:
    require_write_access(db, profile_id, user_id)
    job = _get_job(db, profile_id, job_id)
    status = status or "applied"
    if status not in APPLICATION_STATUSES:
        raise single_field_error("status", f"Status must be one of: {', '.join(APPLICATION_STATUSES)}")
    page, limit = paging.clamp(page, limit)

    base = db.query(JobApplication).filter(JobApplication.job_id == job.id)
    query = base.filter(JobApplication.status == status)
    total = query.count()
    rows = query.order_by(JobApplication.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    people = user_summaries(db, [r.user_id for r in rows])

    applications = []
    for row in rows:
        person = people.get(row.user_id) or {}
        applications.append(
            {
                "id": row.id,
                "job_id": row.job_id,
                "user_id": row.user_id,
                "full_name": row.full_name,
                "email": row.email,
                "phone": row.phone,
                "address": row.address,
                "resume": row.resume or {},
                "status": row.status,
                "applicant": {
                    "name": person.get("name") or row.full_name,
                    "email": person.get("email"),
                    "profile_picture": person.get("avatar"),
                    "role": person.get("role"),
                },
                "created_at": row.created_at,
                "updated_at": row.updated_at,
            }
        )
    return {
        "applications": applications,
        "total": total,
        "page": page,
        "limit": limit,
        "job": {
            "id": job.id,
            "title": job.title,
            "company_id": job.company_id,
            "status": job.status,
            "total_applications": base.count(),
        },
    }


def review_application(
    db: Session, profile_id: str, user_id: str, job_id: str, application_id: str, status: str
) -> dict:
    require_write_access(db, profile_id, user_id)
    if status not in REVIEW_STATUSES:
        raise single_field_error("status", "Status must be either selected or rejected")
    job = _get_job(db, profile_id, job_id)
    application = db.query(JobApplication).filter(JobApplication.id == application_id).first()
    if not application:
        raise ApplicationNotFoundError()
    if application.job_id != job.id:
        raise single_field_error("application_id", "Application does not belong to this job")
    if application.status == status:
        raise single_field_error("status", f"Application is already {status}")

    application.status = status
    application.reviewed_by = user_id
    application.reviewed_at = utcnow()
    application.updated_at = utcnow()
    db.commit()
    db.refresh(application)
    logger.info(f"Application {application.id} {status}", extra={"user_id": user_id, "profile_id": profile_id})
    return {
        "id": application.id,
        "job_id": application.job_id,
        "status": application.status,
        "reviewed_by": application.reviewed_by,
        "reviewed_at": application.reviewed_at,
    }
