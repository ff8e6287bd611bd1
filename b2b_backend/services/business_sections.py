"""
Sections stored inside a business profile's ``company_profile_data``:
about, projects, private info, banner/avatar and achievements.

Reads need only the profile to exist (about also honours its visibility);
writes need owner or admin access.
"""

import logging
import re
import uuid
from datetime import UTC, date, datetime

from sqlalchemy.orm import Session

from b2b_backend.errors import (
    AboutSectionExistsError,
    AboutSectionNotFoundError,
    AchievementNotFoundError,
    BusinessProfilePrivacyError,
    NotFoundError,
    PrivateInfoExistsError,
    PrivateInfoNotFoundError,
    ProjectNotFoundError,
    StorageError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging, storage as files
from b2b_backend.services.business_profiles import (
    URL_PATTERN,
    clean_text,
    get_page,
    page_data,
    require_write_access,
    save_page_data,
)
from b2b_backend.services.connections import is_connected
from b2b_backend.services.storage import ObjectStorage, Upload

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TAX_ID_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{4}$")
EIN_PATTERN = re.compile(r"^\d{2}-\d{7}$")
MAX_TECHNOLOGIES = 15

ABOUT_TEXT_LIMITS = {
    "mission": 1000,
    "vision": 1000,
    "core_values": 1000,
    "founder_message": 1500,
    "employees": 100,
    "headquarters": 200,
}
ACHIEVEMENT_FIELDS = (
    "award_name",
    "awarding_organization",
    "category",
    "date_received",
    "description",
    "issuer",
    "icon",
)

_VISIBILITY_ALIASES = {"connections-only": "connections_only", "owner-only": "owner_only"}


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _parse_iso_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _fail(message: str, errors: list[dict]):
    if errors:
        raise ValidationFailedError(message, errors)


# About


def about_visibility(privacy: dict | None, data: dict | None) -> str:
    privacy = privacy or {}
    about = (data or {}).get("about") or {}
    value = (
        privacy.get("about_visibility")
        or privacy.get("aboutVisibility")
        or (about.get("visibility") if isinstance(about, dict) else None)
        or (privacy.get("sections") or {}).get("about")
        or "public"
    )
    value = str(value).strip().lower()
    return _VISIBILITY_ALIASES.get(value, value)


def _file_object(value, field: str, errors: list[dict]) -> dict | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        errors.append({"field": field, "message": f"{field} must be an object or null"})
        return None
    file_id = clean_text(value.get("fileId") or value.get("fileID"))
    file_url = clean_text(value.get("fileUrl"))
    filename = clean_text(value.get("filename") or value.get("fileName"))
    uploaded_at = value.get("uploadedAt") or value.get("uploaded_at")
    before = len(errors)
    if not file_id:
        errors.append({"field": f"{field}.fileId", "message": "fileId is required"})
    if not filename:
        errors.append({"field": f"{field}.filename", "message": "filename is required"})
    if not file_url:
        errors.append({"field": f"{field}.fileUrl", "message": "fileUrl is required"})
    elif not URL_PATTERN.match(file_url):
        errors.append({"field": f"{field}.fileUrl", "message": "fileUrl must be a valid URL"})
    if len(errors) > before:
        return None
    return {
        "fileId": file_id,
        "fileUrl": file_url,
        "filename": filename,
        "uploadedAt": clean_text(uploaded_at) if uploaded_at is not None else None,
    }


def validate_about(payload, partial: bool = False) -> tuple[dict, list[dict]]:
    if not isinstance(payload, dict):
        return {}, [{"field": "about", "message": "About section data must be provided as an object"}]

    out: dict = {}
    errors: list[dict] = []
    seen = 0

    if not partial or "description" in payload:
        seen += 1
        description = clean_text(payload.get("description"))
        if not description:
            errors.append({"field": "description", "message": "Description is required"})
        elif len(description) > 2000:
            errors.append({"field": "description", "message": "Description must be at most 2000 characters"})
        else:
            out["description"] = description

    for key, max_len in ABOUT_TEXT_LIMITS.items():
        if key not in payload:
            continue
        seen += 1
        value = clean_text(payload[key])
        if not value and not partial:
            errors.append({"field": key, "message": f"{key} cannot be empty"})
        elif len(value) > max_len:
            errors.append({"field": key, "message": f"{key} must be at most {max_len} characters"})
        else:
            out[key] = value

    if "founded" in payload:
        seen += 1
        founded = clean_text(payload["founded"])
        current_year = datetime.now().year
        if not re.fullmatch(r"\d{4}", founded):
            errors.append({"field": "founded", "message": "Founded must be a four digit year"})
        elif not 1000 <= int(founded) <= current_year:
            errors.append({"field": "founded", "message": f"Founded year must be between 1000 and {current_year}"})
        else:
            out["founded"] = founded

    if "company_introduction_video" in payload:
        seen += 1
        before = len(errors)
        video = _file_object(payload["company_introduction_video"], "company_introduction_video", errors)
        if len(errors) == before:
            out["company_introduction_video"] = video

    if partial and seen == 0:
        errors.append({"field": "about", "message": "At least one field must be provided for update"})
    return out, errors


def create_about(db: Session, profile_id: str, user_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if data.get("about"):
        raise AboutSectionExistsError()
    about, errors = validate_about(payload)
    _fail("About section validation failed", errors)

    timestamp = _now()
    data["about"] = {**about, "createdAt": timestamp, "updatedAt": timestamp}
    save_page_data(db, page, data)
    logger.info("About section created", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profile_id": page.id, "about": data["about"]}


def get_about(db: Session, profile_id: str, viewer_id: str | None) -> dict:
    page = get_page(db, profile_id)
    data = page.company_profile_data or {}
    about = data.get("about")
    if not about:
        raise AboutSectionNotFoundError()

    visibility = about_visibility(page.privacy_settings, data)
    if viewer_id != page.owner_id:
        if visibility in ("private", "owner_only"):
            raise BusinessProfilePrivacyError()
        if visibility == "connections_only" and not is_connected(db, viewer_id, page.owner_id):
            raise BusinessProfilePrivacyError("About section is limited to connections")
    return {"profile_id": page.id, "about": about, "visibility": visibility}


def update_about(db: Session, profile_id: str, user_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if not data.get("about"):
        raise AboutSectionNotFoundError()
    changes, errors = validate_about(payload, partial=True)
    _fail("About section validation failed", errors)

    data["about"] = {**data["about"], **changes, "updatedAt": _now()}
    save_page_data(db, page, data)
    return {"profile_id": page.id, "about": data["about"]}


def delete_about(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if not data.get("about"):
        raise AboutSectionNotFoundError()
    del data["about"]
    save_page_data(db, page, data)
    return {"profile_id": page.id, "deleted": True}


# Projects


def _date_field(payload: dict, key: str, label: str, errors: list[dict]) -> date | None:
    value = payload[key]
    if not isinstance(value, str):
        errors.append({"field": key, "message": f"{label} must be a string (YYYY-MM-DD)"})
        return None
    value = value.strip()
    if not ISO_DATE_PATTERN.match(value):
        errors.append({"field": key, "message": f"{label} must be in YYYY-MM-DD format"})
        return None
    parsed = _parse_iso_date(value)
    if parsed is None:
        errors.append({"field": key, "message": f"{label} must be a valid date"})
    return parsed


def validate_project(payload) -> tuple[dict, list[dict]]:
    """Validate a complete project; updates merge into the stored project first."""
    if not isinstance(payload, dict):
        return {}, [{"field": "payload", "message": "Project data must be an object"}]

    out: dict = {}
    errors: list[dict] = []

    title = payload.get("title")
    if not title or not isinstance(title, str):
        errors.append({"field": "title", "message": "Title is required and must be a string"})
    elif not 5 <= len(title.strip()) <= 100:
        errors.append({"field": "title", "message": "Title must be between 5 and 100 characters"})
    else:
        out["title"] = title.strip()

    description = payload.get("description")
    if not description or not isinstance(description, str):
        errors.append({"field": "description", "message": "Description is required and must be a string"})
    elif not 10 <= len(description.strip()) <= 2000:
        errors.append({"field": "description", "message": "Description must be between 10 and 2000 characters"})
    else:
        out["description"] = description.strip()

    start = None
    if not payload.get("startDate"):
        errors.append({"field": "startDate", "message": "Start date is required and must be a string (YYYY-MM-DD)"})
    else:
        start = _date_field(payload, "startDate", "Start date", errors)
        if start is not None:
            out["startDate"] = payload["startDate"].strip()

    end_date = payload.get("endDate")
    if end_date is None or (isinstance(end_date, str) and not end_date.strip()):
        out["endDate"] = None
    else:
        end = _date_field(payload, "endDate", "End date", errors)
        if end is not None:
            if start is not None and end < start:
                errors.append({"field": "endDate", "message": "End date must be after start date"})
            else:
                out["endDate"] = end_date.strip()

    status = payload.get("status")
    if status is not None and not isinstance(status, str):
        errors.append({"field": "status", "message": "Status must be a string or null"})
    else:
        out["status"] = (status or "").strip() or None

    technologies = payload.get("technologies")
    if technologies is None:
        out["technologies"] = None
    elif not isinstance(technologies, list):
        errors.append({"field": "technologies", "message": "Technologies must be an array or null"})
    elif len(technologies) > MAX_TECHNOLOGIES:
        errors.append({"field": "technologies", "message": f"Maximum {MAX_TECHNOLOGIES} technologies allowed"})
    else:
        cleaned = []
        for i, tech in enumerate(technologies):
            if isinstance(tech, str) and tech.strip():
                cleaned.append(tech.strip())
            else:
                errors.append({"field": f"technologies[{i}]", "message": "Each technology must be a non-empty string"})
        out["technologies"] = cleaned or None

    client = payload.get("client")
    if client is not None and not isinstance(client, str):
        errors.append({"field": "client", "message": "Client must be a string or null"})
    elif client is not None and len(client.strip()) > 150:
        errors.append({"field": "client", "message": "Client name must not exceed 150 characters"})
    else:
        out["client"] = (client or "").strip() or None

    project_url = payload.get("project_url")
    if project_url is not None and not isinstance(project_url, str):
        errors.append({"field": "project_url", "message": "Project URL must be a string or null"})
    elif project_url and project_url.strip():
        url = project_url.strip()
        if not url.startswith(("http://", "https://")):
            errors.append({"field": "project_url", "message": "Project URL must include http:// or https://"})
        elif not URL_PATTERN.match(url):
            errors.append({"field": "project_url", "message": "Project URL must be a valid URL"})
        else:
            out["project_url"] = url
    else:
        out["project_url"] = None

    return out, errors


def _find(items: list[dict], key: str, item_id: str) -> int:
    for index, item in enumerate(items):
        if item.get(key) == item_id:
            return index
    return -1


def create_project(db: Session, profile_id: str, user_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    project, errors = validate_project(payload)
    _fail("Project validation failed", errors)

    timestamp = _now()
    project = {"projectId": str(uuid.uuid4()), **project, "createdAt": timestamp, "updatedAt": timestamp}
    data = page_data(page)
    data["projects"] = [*(data.get("projects") or []), project]
    save_page_data(db, page, data)
    logger.info(f"Project {project['projectId']} created", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profile_id": page.id, "project": project}


def list_projects(db: Session, profile_id: str, page_number: int = 1, limit: int = 20) -> dict:
    page = get_page(db, profile_id)
    page_number, limit = paging.clamp(page_number, limit)
    projects = sorted(
        (page.company_profile_data or {}).get("projects") or [],
        key=lambda p: p.get("startDate") or "",
        reverse=True,
    )
    return {
        "profile_id": page.id,
        "projects": paging.window(projects, page_number, limit),
        "pagination": {
            "page": page_number,
            "limit": limit,
            "total": len(projects),
            "totalPages": paging.total_pages(len(projects), limit),
        },
    }


def update_project(db: Session, profile_id: str, user_id: str, project_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    projects = data.get("projects") or []
    index = _find(projects, "projectId", project_id)
    if index < 0:
        raise ProjectNotFoundError()
    if not isinstance(payload, dict):
        raise single_field_error("payload", "Project data must be an object")

    existing = projects[index]
    merged, errors = validate_project({**existing, **payload})
    _fail("Project validation failed", errors)

    projects[index] = {
        **merged,
        "projectId": existing["projectId"],
        "createdAt": existing.get("createdAt"),
        "updatedAt": _now(),
    }
    data["projects"] = projects
    save_page_data(db, page, data)
    return {"profile_id": page.id, "project": projects[index]}


def delete_project(db: Session, profile_id: str, user_id: str, project_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    projects = data.get("projects") or []
    if _find(projects, "projectId", project_id) < 0:
        raise ProjectNotFoundError()
    data["projects"] = [p for p in projects if p.get("projectId") != project_id]
    save_page_data(db, page, data)
    return {"profile_id": page.id, "project_id": project_id, "deleted": True}


# Private info


def validate_private_info(payload, partial: bool = False) -> tuple[dict, list[dict]]:
    if not isinstance(payload, dict):
        return {}, [{"field": "privateInfo", "message": "Private info data must be provided as an object"}]

    out: dict = {}
    errors: list[dict] = []
    seen = 0

    for key, label, pattern, fmt in (
        ("taxId", "Tax ID", TAX_ID_PATTERN, "XXX-XX-XXXX"),
        ("ein", "EIN", EIN_PATTERN, "XX-XXXXXXX"),
        ("legalName", "Legal name", None, None),
    ):
        if partial and key not in payload:
            continue
        seen += 1
        value = clean_text(payload.get(key))
        if not value:
            errors.append({"field": key, "message": f"{label} is required"})
        elif pattern is not None and not pattern.match(value):
            errors.append({"field": key, "message": f"{label} must be in format {fmt}"})
        else:
            out[key] = value

    if "bankDetails" in payload:
        seen += 1
        bank = payload["bankDetails"]
        if bank is None:
            out["bankDetails"] = None
        elif not isinstance(bank, dict):
            errors.append({"field": "bankDetails", "message": "Bank details must be an object or null"})
        else:
            out["bankDetails"] = {
                key: clean_text(bank[key])
                for key in ("accountNumber", "routingNumber", "bankName")
                if clean_text(bank.get(key))
            }

    for key in ("registration_certificate", "business_license"):
        if key in payload:
            seen += 1
            before = len(errors)
            document = _file_object(payload[key], key, errors)
            if len(errors) == before:
                out[key] = document

    if partial and seen == 0:
        errors.append({"field": "privateInfo", "message": "At least one field must be provided for update"})
    return out, errors


def create_private_info(db: Session, profile_id: str, user_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if data.get("private_info"):
        raise PrivateInfoExistsError()
    info, errors = validate_private_info(payload)
    _fail("Private info validation failed", errors)

    timestamp = _now()
    data["private_info"] = {**info, "createdAt": timestamp, "updatedAt": timestamp}
    save_page_data(db, page, data)
    logger.info("Private info created", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profile_id": page.id, "private_info": data["private_info"]}


def get_private_info(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    info = (page.company_profile_data or {}).get("private_info")
    if not info:
        raise PrivateInfoNotFoundError()
    return {"profile_id": page.id, "private_info": info}


def update_private_info(db: Session, profile_id: str, user_id: str, payload) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if not data.get("private_info"):
        raise PrivateInfoNotFoundError()
    changes, errors = validate_private_info(payload, partial=True)
    _fail("Private info validation failed", errors)

    data["private_info"] = {**data["private_info"], **changes, "updatedAt": _now()}
    save_page_data(db, page, data)
    return {"profile_id": page.id, "private_info": data["private_info"]}


def delete_private_info(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    if not data.get("private_info"):
        raise PrivateInfoNotFoundError()
    del data["private_info"]
    save_page_data(db, page, data)
    return {"profile_id": page.id, "deleted": True}


# Banner and avatar

MEDIA_FOLDERS = {"banner": files.BUSINESS_BANNERS, "avatar": files.BUSINESS_AVATARS}


def upload_media(db: Session, storage: ObjectStorage, profile_id: str, user_id: str, key: str, upload: Upload) -> dict:
    """Store a banner or avatar image, replacing (and discarding) the previous one."""
    page = require_write_access(db, profile_id, user_id)
    folder = MEDIA_FOLDERS[key]
    stored = files.store_upload(storage, user_id, upload, folder, files.IMAGE_TYPES, key)
    media = {
        "fileId": stored["fileId"],
        "fileUrl": stored["fileUrl"],
        "filename": stored["fileName"],
        "uploadedAt": stored["uploadedAt"],
    }

    data = page_data(page)
    previous = data.get(key)
    data[key] = media
    save_page_data(db, page, data)
    if isinstance(previous, dict):
        files.discard(storage, previous.get("fileUrl"), folder)
    logger.info(f"Business {key} uploaded", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profile_id": page.id, key: media}


def get_media(db: Session, profile_id: str, key: str) -> dict:
    page = get_page(db, profile_id)
    media = (page.company_profile_data or {}).get(key)
    if not media:
        raise NotFoundError(f"{key.capitalize()} not found", f"{key.upper()}_NOT_FOUND")
    return {"profile_id": page.id, key: media}


def delete_media(db: Session, storage: ObjectStorage, profile_id: str, user_id: str, key: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    previous = data.pop(key, None)
    if not previous:
        raise NotFoundError(f"{key.capitalize()} not found", f"{key.upper()}_NOT_FOUND")
    save_page_data(db, page, data)
    files.discard(storage, previous.get("fileUrl"), MEDIA_FOLDERS[key])
    return {"profile_id": page.id, "deleted": True}


# Achievements


def _check_date_received(value, errors: list[dict]):
    parsed = _parse_iso_date(clean_text(value)[:10])
    if parsed is None:
        errors.append({"field": "date_received", "message": "Date received must be a valid date (YYYY-MM-DD)"})
    elif parsed > date.today():
        errors.append({"field": "date_received", "message": "Date received cannot be in the future"})


def _store_certificates(storage: ObjectStorage, user_id: str, certificates: list[Upload]) -> list[dict]:
    """Store every certificate or none; earlier uploads are removed when a later one fails."""
    for certificate in certificates:
        files.check_upload(certificate.filename, certificate.size, files.CERTIFICATE_TYPES, "certificates")
    stored: list[dict] = []
    try:
        for certificate in certificates:
            result = files.store_upload(
                storage, user_id, certificate, files.ACHIEVEMENT_CERTIFICATES, files.CERTIFICATE_TYPES, "certificates"
            )
            stored.append({"file_url": result["fileUrl"]})
    except StorageError:
        for entry in stored:
            files.discard(storage, entry["file_url"], files.ACHIEVEMENT_CERTIFICATES)
        raise
    return stored


def create_achievement(
    db: Session,
    storage: ObjectStorage,
    profile_id: str,
    user_id: str,
    payload,
    certificates: list[Upload] | None = None,
) -> dict:
    page = require_write_access(db, profile_id, user_id)
    if not isinstance(payload, dict):
        raise single_field_error("data", "Achievement data must be an object")

    errors = []
    if not clean_text(payload.get("award_name")):
        errors.append({"field": "award_name", "message": "Award name is required"})
    if not clean_text(payload.get("date_received")):
        errors.append({"field": "date_received", "message": "Date received is required"})
    else:
        _check_date_received(payload["date_received"], errors)
    _fail("Achievement validation failed", errors)

    timestamp = _now()
    achievement = {"achievementId": str(uuid.uuid4())}
    for key in ACHIEVEMENT_FIELDS:
        value = clean_text(payload.get(key))
        if value:
            achievement[key] = value
    certificate_urls = [c for c in payload.get("certificateUrl") or [] if isinstance(c, dict) and c.get("file_url")]
    certificate_urls += _store_certificates(storage, user_id, certificates or [])
    if certificate_urls:
        achievement["certificateUrl"] = certificate_urls
    achievement.update(createdAt=timestamp, updatedAt=timestamp)

    data = page_data(page)
    data["achievements"] = [*(data.get("achievements") or []), achievement]
    save_page_data(db, page, data)
    logger.info(
        f"Achievement {achievement['achievementId']} created", extra={"user_id": user_id, "profile_id": profile_id}
    )
    return {"profile_id": page.id, "achievement": achievement}


def list_achievements(db: Session, profile_id: str, page_number: int = 1, limit: int = 20) -> dict:
    page = get_page(db, profile_id)
    page_number, limit = paging.clamp(page_number, limit)
    achievements = (page.company_profile_data or {}).get("achievements") or []
    return {
        "profile_id": page.id,
        "achievements": paging.window(achievements, page_number, limit),
        "pagination": {
            "page": page_number,
            "limit": limit,
            "total": len(achievements),
            "totalPages": paging.total_pages(len(achievements), limit),
        },
    }


def get_achievement(db: Session, profile_id: str, achievement_id: str) -> dict:
    page = get_page(db, profile_id)
    achievements = (page.company_profile_data or {}).get("achievements") or []
    index = _find(achievements, "achievementId", achievement_id)
    if index < 0:
        raise AchievementNotFoundError()
    return {"profile_id": page.id, "achievement": achievements[index]}


def update_achievement(
    db: Session,
    storage: ObjectStorage,
    profile_id: str,
    user_id: str,
    achievement_id: str,
    payload,
    certificates: list[Upload] | None = None,
) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    achievements = data.get("achievements") or []
    index = _find(achievements, "achievementId", achievement_id)
    if index < 0:
        raise AchievementNotFoundError()
    payload = payload or {}
    if not isinstance(payload, dict):
        raise single_field_error("data", "Achievement data must be an object")

    errors = []
    if "award_name" in payload and not clean_text(payload["award_name"]):
        errors.append({"field": "award_name", "message": "Award name is required"})
    if "date_received" in payload:
        if not clean_text(payload["date_received"]):
            errors.append({"field": "date_received", "message": "Date received is required"})
        else:
            _check_date_received(payload["date_received"], errors)
    _fail("Achievement validation failed", errors)

    achievement = dict(achievements[index])
    previous_urls = {c.get("file_url") for c in achievement.get("certificateUrl") or [] if isinstance(c, dict)}
    for key in ACHIEVEMENT_FIELDS:
        if key in payload:
            achievement[key] = clean_text(payload[key])
    if "certificateUrl" in payload:
        achievement["certificateUrl"] = [
            c for c in payload["certificateUrl"] or [] if isinstance(c, dict) and c.get("file_url")
        ]
    if certificates:
        achievement["certificateUrl"] = [
            *(achievement.get("certificateUrl") or []),
            *_store_certificates(storage, user_id, certificates),
        ]
    achievement["updatedAt"] = _now()

    achievements[index] = achievement
    data["achievements"] = achievements
    save_page_data(db, page, data)
    kept_urls = {c["file_url"] for c in achievement.get("certificateUrl") or []}
    for url in previous_urls - kept_urls:
        files.discard(storage, url, files.ACHIEVEMENT_CERTIFICATES)
    return {"profile_id": page.id, "achievement": achievement}


def delete_achievement(db: Session, storage: ObjectStorage, profile_id: str, user_id: str, achievement_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    data = page_data(page)
    achievements = data.get("achievements") or []
    index = _find(achievements, "achievementId", achievement_id)
    if index < 0:
        raise AchievementNotFoundError()

    removed = achievements.pop(index)
    data["achievements"] = achievements
    save_page_data(db, page, data)
    for certificate in removed.get("certificateUrl") or []:
        files.discard(storage, certificate.get("file_url"), files.ACHIEVEMENT_CERTIFICATES)
    return {"profile_id": page.id, "achievement_id": achievement_id, "deleted": True}
