"""Personal profile endpoints."""

import json

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from b2b_backend.api.deps import get_current_user_id, get_optional_user_id, read_upload
from b2b_backend.api.limiter import limiter
from b2b_backend.api.schemas import ProfileCreate, ProfileSearchResponse
from b2b_backend.db import get_db
from b2b_backend.errors import single_field_error
from b2b_backend.services import profiles
from b2b_backend.services.storage import ObjectStorage, get_storage

router = APIRouter()


@router.post("/create", status_code=201)
def create_profile(
    data: ProfileCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create the caller's profile for their current role."""
    return profiles.create_profile(db, user_id, data.profile_data)


async def _edit_payload(request: Request) -> tuple[str | None, object, StarletteUploadFile | None, bool]:
    """``(field, data, certificate, multipart)`` from a JSON or multipart body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        raw = form.get("data")
        if raw is None or raw == "":
            raise single_field_error("data", "Missing required fields")
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            raise single_field_error("data", "Invalid JSON data in form field") from None
        certificate = form.get("certificate")
        if not isinstance(certificate, StarletteUploadFile):
            certificate = None
        return form.get("field"), data, certificate, True

    try:
        body = await request.json()
    except ValueError:
        raise single_field_error("body", "Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise single_field_error("body", "Request body must be an object")
    return body.get("field"), body.get("data"), None, False


@router.put("/edit")
async def edit_profile(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    """Replace one section. Accepts JSON ``{field, data}`` or multipart with an optional certificate."""
    field, data, certificate, multipart = await _edit_payload(request)
    if not field:
        raise single_field_error("field", "Missing required fields")
    upload = await read_upload(certificate)
    return profiles.edit_profile(db, storage, user_id, field, data, certificate=upload, multipart=multipart)


@router.post("/upload-resume")
async def upload_resume(
    resume: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return profiles.upload_profile_file(db, storage, user_id, "resume", await read_upload(resume))


@router.post("/upload-avatar")
async def upload_avatar(
    avatar: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return profiles.upload_profile_file(db, storage, user_id, "avatar", await read_upload(avatar))


@router.post("/upload-banner")
async def upload_banner(
    banner: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return profiles.upload_profile_file(db, storage, user_id, "banner", await read_upload(banner))


@router.delete("/avatar")
def delete_avatar(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return profiles.remove_profile_file(db, storage, user_id, "avatar")


@router.delete("/banner")
def delete_banner(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return profiles.remove_profile_file(db, storage, user_id, "banner")


@router.get("/search", response_model=ProfileSearchResponse)
@limiter.limit("30/minute")
def search_profiles(
    request: Request,
    q: str | None = None,
    limit: int = 20,
    page: int = 1,
    sort: str | None = None,
    db: Session = Depends(get_db),
):
    """Search profiles by name, closest matches first."""
    return profiles.search_profiles(db, q, page=page, limit=limit, sort=sort)


@router.get("/{user_id}")
def get_profile(
    user_id: str,
    viewer_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """A profile as the caller may see it."""
    return profiles.get_profile_view(db, user_id, viewer_id)
