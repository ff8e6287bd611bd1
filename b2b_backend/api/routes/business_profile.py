"""Business profile endpoints: profile, sections, media and privacy settings."""

import json

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from b2b_backend.api.deps import get_current_user_id, get_optional_user_id, read_upload
from b2b_backend.db import get_db
from b2b_backend.errors import single_field_error
from b2b_backend.services import business_profiles, business_sections as sections
from b2b_backend.services.storage import ObjectStorage, get_storage

router = APIRouter()


@router.post("/create-business-profile", status_code=201)
def create_business_profile(
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a business profile owned by the caller."""
    return business_profiles.create_business_profile(db, user_id, payload)


@router.get("/{profile_id}")
def get_business_profile(
    profile_id: str,
    viewer_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """The profile plus the caller's role on it (owner/admin/editor/null)."""
    return business_profiles.get_business_profile(db, profile_id, viewer_id)


# About


@router.post("/{profile_id}/about", status_code=201)
def create_about(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.create_about(db, profile_id, user_id, payload)


@router.get("/{profile_id}/about")
def get_about(
    profile_id: str,
    viewer_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    return sections.get_about(db, profile_id, viewer_id)


@router.put("/{profile_id}/about")
def update_about(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.update_about(db, profile_id, user_id, payload)


@router.delete("/{profile_id}/about")
def delete_about(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return sections.delete_about(db, profile_id, user_id)


# Projects


@router.post("/{profile_id}/projects", status_code=201)
def create_project(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.create_project(db, profile_id, user_id, payload)


@router.get("/{profile_id}/projects")
def list_projects(profile_id: str, page: int = 1, limit: int = 20, db: Session = Depends(get_db)):
    """Projects, most recent start date first."""
    return sections.list_projects(db, profile_id, page, limit)


@router.put("/{profile_id}/projects/{project_id}")
def update_project(
    profile_id: str,
    project_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.update_project(db, profile_id, user_id, project_id, payload)


@router.delete("/{profile_id}/projects/{project_id}")
def delete_project(
    profile_id: str,
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.delete_project(db, profile_id, user_id, project_id)


# Private info


@router.post("/{profile_id}/private-info", status_code=201)
def create_private_info(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.create_private_info(db, profile_id, user_id, payload)


@router.get("/{profile_id}/private-info")
def get_private_info(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return sections.get_private_info(db, profile_id, user_id)


@router.put("/{profile_id}/private-info")
def update_private_info(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return sections.update_private_info(db, profile_id, user_id, payload)


@router.delete("/{profile_id}/private-info")
def delete_private_info(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return sections.delete_private_info(db, profile_id, user_id)


# Banner and avatar


async def _upload_media(db, storage, profile_id: str, user_id: str, key: str, file: UploadFile):
    upload = await read_upload(file)
    if upload is None:
        raise single_field_error(key, f"{key.capitalize()} file is required")
    return sections.upload_media(db, storage, profile_id, user_id, key, upload)


@router.post("/{profile_id}/banner", status_code=201)
@router.put("/{profile_id}/banner")
async def upload_banner(
    profile_id: str,
    banner: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return await _upload_media(db, storage, profile_id, user_id, "banner", banner)


@router.get("/{profile_id}/banner")
def get_banner(profile_id: str, db: Session = Depends(get_db)):
    return sections.get_media(db, profile_id, "banner")


@router.delete("/{profile_id}/banner")
def delete_banner(
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return sections.delete_media(db, storage, profile_id, user_id, "banner")


@router.post("/{profile_id}/avatar", status_code=201)
@router.put("/{profile_id}/avatar")
async def upload_avatar(
    profile_id: str,
    avatar: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return await _upload_media(db, storage, profile_id, user_id, "avatar", avatar)


@router.get("/{profile_id}/avatar")
def get_avatar(profile_id: str, db: Session = Depends(get_db)):
    return sections.get_media(db, profile_id, "avatar")


@router.delete("/{profile_id}/avatar")
def delete_avatar(
    profile_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return sections.delete_media(db, storage, profile_id, user_id, "avatar")


# Achievements


async def _achievement_payload(request: Request) -> tuple[dict, list]:
    """``(data, certificates)`` from multipart (``data`` JSON + ``certificates``) or a JSON body."""
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        raw = form.get("data") or "{}"
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            raise single_field_error("data", "Invalid JSON data in form field") from None
        certificates = [
            await read_upload(item)
            for item in form.getlist("certificates")
            if isinstance(item, StarletteUploadFile) and item.filename
        ]
        return data, certificates
    try:
        return await request.json(), []
    except ValueError:
        raise single_field_error("body", "Request body must be valid JSON") from None


@router.post("/{profile_id}/achievements", status_code=201)
async def create_achievement(
    profile_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    data, certificates = await _achievement_payload(request)
    return sections.create_achievement(db, storage, profile_id, user_id, data, certificates)


@router.get("/{profile_id}/achievements")
def list_achievements(profile_id: str, page: int = 1, limit: int = 20, db: Session = Depends(get_db)):
    return sections.list_achievements(db, profile_id, page, limit)


@router.get("/{profile_id}/achievements/{achievement_id}")
def get_achievement(profile_id: str, achievement_id: str, db: Session = Depends(get_db)):
    return sections.get_achievement(db, profile_id, achievement_id)


@router.put("/{profile_id}/achievements/{achievement_id}")
async def update_achievement(
    profile_id: str,
    achievement_id: str,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    data, certificates = await _achievement_payload(request)
    return sections.update_achievement(db, storage, profile_id, user_id, achievement_id, data, certificates)


@router.delete("/{profile_id}/achievements/{achievement_id}")
def delete_achievement(
    profile_id: str,
    achievement_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    return sections.delete_achievement(db, storage, profile_id, user_id, achievement_id)


# Privacy settings


@router.get("/{profile_id}/privacy-settings")
def get_privacy_settings(profile_id: str, db: Session = Depends(get_db)):
    return business_profiles.get_privacy_settings(db, profile_id)


@router.put("/{profile_id}/privacy-settings")
def update_privacy_settings(
    profile_id: str,
    payload: dict = Body(...),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return business_profiles.update_privacy_settings(db, profile_id, user_id, payload)


@router.delete("/{profile_id}/privacy-settings")
def reset_privacy_settings(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Reset to the defaults."""
    return business_profiles.reset_privacy_settings(db, profile_id, user_id)
