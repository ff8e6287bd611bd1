"""Applicant endpoints: apply for a job and manage own applications."""

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from b2b_backend.api.deps import get_current_user_id, read_upload
from b2b_backend.api.schemas import ApplicationCreate, ApplicationUpdate
from b2b_backend.db import get_db
from b2b_backend.errors import single_field_error
from b2b_backend.services import applications
from b2b_backend.services.storage import ObjectStorage, Upload, get_storage

router = APIRouter()


async def _application_payload(request: Request, schema: type[BaseModel]) -> tuple[dict, Upload | None]:
    """``(fields, resume_file)`` from JSON or multipart form fields plus a ``resume`` file."""
    resume_file = None
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        body = {}
        for key, value in form.multi_items():
            if isinstance(value, StarletteUploadFile):
                if key == "resume":
                    resume_file = await read_upload(value)
            elif value != "":
                body[key] = value
    else:
        try:
            body = await request.json()
        except ValueError:
            raise single_field_error("body", "Request body must be valid JSON") from None

    try:
        data = schema.model_validate(body)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from None
    return data.model_dump(exclude_unset=True), resume_file


@router.post("/{job_id}/apply", status_code=201)
async def apply(
    job_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Apply for an active job with an uploaded resume or a stored resume reference."""
    details, resume_file = await _application_payload(request, ApplicationCreate)
    return applications.apply(db, storage, job_id, user_id, details, resume_file)


@router.get("/applications")
def my_applications(
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return applications.my_applications(db, user_id, status, page, limit)


@router.get("/applications/{application_id}")
def get_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return applications.get_application(db, user_id, application_id)


@router.put("/applications/{application_id}")
async def update_application(
    application_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Change phone, email or resume while the application is unreviewed."""
    changes, resume_file = await _application_payload(request, ApplicationUpdate)
    return applications.update_application(db, storage, user_id, application_id, changes, resume_file)


@router.delete("/applications/{application_id}")
def revoke_application(
    application_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return applications.revoke_application(db, storage, user_id, application_id)
