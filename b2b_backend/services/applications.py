"""Applicant side of job applications."""

import logging

from sqlalchemy.orm import Session

from b2b_backend.db import Job, JobApplication, UserProfile
from b2b_backend.db.tables import utcnow
from b2b_backend.errors import (
    AlreadyAppliedError,
    ApplicationNotFoundError,
    JobNotFoundError,
    PermissionDeniedError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging, storage as files
from b2b_backend.services.jobs import APPLICATION_STATUSES
from b2b_backend.services.storage import ObjectStorage, Upload

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("phone", "email", "resume")


def serialize_application(application: JobApplication, job: Job | None = None) -> dict:
    data = {
        "id": application.id,
        "job_id": application.job_id,
        "user_id": application.user_id,
        "full_name": application.full_name,
        "email": application.email,
        "phone": application.phone,
        "address": application.address,
        "resume": application.resume or {},
        "status": application.status,
        "reviewed_at": application.reviewed_at,
        "created_at": application.created_at,
        "updated_at": application.updated_at,
    }
    if job is not None:
        data["job_title"] = job.title
        data["company_id"] = job.company_id
        data["company_name"] = job.company.company_name if job.company else None
    return data


def _resume(storage: ObjectStorage, user_id: str, upload: Upload | None, resume: dict | None) -> dict | None:
    """Resume reference from an uploaded file or a ``{file_name, file_url}`` object."""
    if upload is not None:
        stored = files.store_upload(storage, user_id, upload, files.RESUMES, files.RESUME_TYPES, "resume")
        return {"file_name": upload.filename, "file_url": stored["fileUrl"]}
    if isinstance(resume, dict) and resume.get("file_url"):
        return {"file_name": resume.get("file_name") or files.filename_from_key(resume["file_url"]),
                "file_url": resume["file_url"]}
    return None


def _release_resume(db: Session, storage: ObjectStorage, user_id: str, url: str | None):
    """Discard a resume no longer attached anywhere for this user."""
    if not url:
        return
    for other in db.query(JobApplication).filter(JobApplication.user_id == user_id).all():
        if (other.resume or {}).get("file_url") == url:
            return
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    profile_resume = (profile.profile_data or {}).get("resume") if profile else None
    if isinstance(profile_resume, dict) and profile_resume.get("fileUrl") == url:
        return
    files.discard(storage, url, files.RESUMES)


def apply(
    db: Session,
    storage: ObjectStorage,
    job_id: str,
    user_id: str,
    details: dict,
    resume_file: Upload | None = None,
) -> dict:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise JobNotFoundError()
    if job.status != "active":
        raise single_field_error(
            "job", "Job is not active. Applications are only accepted for active jobs.", "Job is not active"
        )
    resume_ref = details.get("resume")
    if resume_file is None and not (isinstance(resume_ref, dict) and resume_ref.get("file_url")):
        raise single_field_error("resume", "Resume file is required")

    existing = (
        db.query(JobApplication).filter(JobApplication.job_id == job_id, JobApplication.user_id == user_id).first()
    )
    if existing and existing.status in ("applied", "selected"):
        raise AlreadyAppliedError()

    resume = _resume(storage, user_id, resume_file, resume_ref)
    replaced_url = (existing.resume or {}).get("file_url") if existing else None
    fields = {
        "full_name": details.get("full_name") or "",
        "email": details.get("email"),
        "phone": details.get("phone"),
        "address": details.get("address"),
        "resume": resume,
    }
    if existing:
        for key, value in fields.items():
            setattr(existing, key, value)
        existing.status = "applied"
        existing.reviewed_by = None
        existing.reviewed_at = None
        existing.updated_at = utcnow()
        application = existing
        logger.info(f"Rejected application {existing.id} re-opened", extra={"user_id": user_id})
    else:
        application = JobApplication(job_id=job_id, user_id=user_id, status="applied", **fields)
        db.add(application)
    db.commit()
    db.refresh(application)
    if replaced_url and replaced_url != resume["file_url"]:
        _release_resume(db, storage, user_id, replaced_url)
    logger.info(f"Applied for job {job_id}", extra={"user_id": user_id})
    return serialize_application(application)


def my_applications(db: Session, user_id: str, status: str | None = None, page: int = 1, limit: int = 20) -> dict:
    if status and status not in APPLICATION_STATUSES:
        raise single_field_error("status", f"Status must be one of: {', '.join(APPLICATION_STATUSES)}")
    page, limit = paging.clamp(page, limit)

    query = db.query(JobApplication).filter(JobApplication.user_id == user_id)
    if status:
        query = query.filter(JobApplication.status == status)
    total = query.count()
    rows = query.order_by(JobApplication.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "applications": [serialize_application(a, a.job) for a in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": paging.total_pages(total, limit),
    }


def _own_application(db: Session, user_id: str, application_id: str, action: str) -> JobApplication:
    application = db.query(JobApplication).filter(JobApplication.id == application_id).first()
    if not application:
        raise ApplicationNotFoundError()
    if application.user_id != user_id:
        raise PermissionDeniedError(f"Unauthorized access - You can only {action} your own applications")
    return application


def get_application(db: Session, user_id: str, application_id: str) -> dict:
    application = _own_application(db, user_id, application_id, "view")
    return serialize_application(application, application.job)


def update_application(
    db: Session,
    storage: ObjectStorage,
    user_id: str,
    application_id: str,
    changes: dict,
    resume_file: Upload | None = None,
) -> dict:
    application = _own_application(db, user_id, application_id, "update")
    if application.status != "applied":
        raise ValidationFailedError("Cannot edit application after it has been reviewed", code="ALREADY_REVIEWED")

    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
    if resume_file is not None or "resume" in changes:
        resume = _resume(storage, user_id, resume_file, changes.get("resume"))
        if resume is None:
            raise single_field_error("resume", "Resume must include file_url")
        changes["resume"] = resume
    if not changes:
        raise single_field_error("body", "At least one field must be provided for update", "No fields to update")

    previous_resume = application.resume or {}
    for key, value in changes.items():
        setattr(application, key, value)
    application.updated_at = utcnow()
    db.commit()
    db.refresh(application)
    if previous_resume.get("file_url") != application.resume.get("file_url"):
        _release_resume(db, storage, user_id, previous_resume.get("file_url"))
    logger.info(f"Application {application.id} updated", extra={"user_id": user_id})
    return serialize_application(application, application.job)


def revoke_application(db: Session, storage: ObjectStorage, user_id: str, application_id: str) -> dict:
    application = _own_application(db, user_id, application_id, "revoke")
    if application.status != "applied":
        raise ValidationFailedError(
            f"Cannot revoke application after it has been reviewed (status: {application.status})",
            code="ALREADY_REVIEWED",
        )
    job = application.job
    result = {
        "deleted": True,
        "application_id": application.id,
        "job_id": application.job_id,
        "job_title": job.title if job else None,
    }
    resume_url = (application.resume or {}).get("file_url")
    db.delete(application)
    db.commit()
    _release_resume(db, storage, user_id, resume_url)
    logger.info(f"Application {application_id} revoked", extra={"user_id": user_id})
    return result
