"""
Personal profiles: creation, field edits, file uploads, search and privacy views.
"""

import copy
import logging
import uuid

from sqlalchemy.orm import Session

from b2b_backend.db import User, UserProfile
from b2b_backend.db.tables import utcnow
from b2b_backend.errors import (
    ProfileExistsError,
    ProfileNotFoundError,
    StorageError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging, storage as files
from b2b_backend.services.accounts import PERSONAL_ROLES
from b2b_backend.services.connections import is_connected
from b2b_backend.services.people import profile_avatar
from b2b_backend.services.profile_validation import validate_profile_data, validate_profile_field
from b2b_backend.services.storage import ObjectStorage, Upload

logger = logging.getLogger(__name__)

NESTABLE_FIELDS = (
    "personal_information",
    "education",
    "about",
    "experience",
    "skills",
    "projects",
    "certifications",
    "awards",
)
CONTACT_KEYS = ("email", "phone_number", "postal_code")
CERTIFICATE_UPLOAD_WARNING = "Certificate upload failed, but certification saved without certificate file"


def default_privacy_settings(role: str) -> dict:
    return {
        "profile_visibility": "Connections Only",
        "contact_visibility": "Connections Only",
        "experience_visibility": "Public",
        "skills_visibility": True,
        "recruiter_contact": role == "professional",
    }


def unwrap_nested(field: str, value):
    """``{field: {field: x}}`` -> ``{field: x}``."""
    if isinstance(value, dict) and value.get(field):
        logger.warning(f"Unwrapping double-nested '{field}' in profile data")
        return value[field]
    return value


def normalize_profile_data(profile_data: dict | None) -> dict:
    data = copy.deepcopy(profile_data or {})
    for field in NESTABLE_FIELDS:
        if field in data:
            data[field] = unwrap_nested(field, data[field])
    return data


def _load_profile(db: Session, user_id: str) -> UserProfile | None:
    """Fetch a profile, writing back normalised data when it was double-nested."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile is not None:
        normalized = normalize_profile_data(profile.profile_data)
        if normalized != (profile.profile_data or {}):
            profile.profile_data = normalized
            db.commit()
            db.refresh(profile)
    return profile


def _require_profile(db: Session, user_id: str) -> UserProfile:
    profile = _load_profile(db, user_id)
    if not profile:
        raise ProfileNotFoundError()
    return profile


def _save(db: Session, profile: UserProfile, data: dict):
    profile.profile_data = data
    profile.updated_at = utcnow()
    db.commit()
    db.refresh(profile)


def create_profile(db: Session, user_id: str, profile_data) -> dict:
    user = db.query(User).filter(User.id == user_id).first()
    role = user.role if user else None
    if not role:
        raise single_field_error("role", "User role required")
    if role not in PERSONAL_ROLES:
        raise single_field_error("role", "Invalid user role")
    if not isinstance(profile_data, dict) or not profile_data.get("personal_information"):
        raise single_field_error(
            "profile_data.personal_information",
            "Personal information is required",
            "profile_data must be an object with personal_information",
        )

    if db.query(UserProfile).filter(UserProfile.user_id == user_id).first():
        raise ProfileExistsError()

    errors = validate_profile_data(profile_data, role)
    if errors:
        raise ValidationFailedError("Profile validation failed", errors)

    profile = UserProfile(
        user_id=user_id,
        role=role,
        profile_data=profile_data,
        privacy_settings=default_privacy_settings(role),
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info("Profile created", extra={"user_id": user_id})

    return {
        "profile_id": profile.user_id,
        "user_id": profile.user_id,
        "profile_data": profile.profile_data,
        "created_at": profile.created_at,
    }


def _attach_certificate(
    storage: ObjectStorage,
    user_id: str,
    certifications: list,
    stored: list,
    certificate: Upload,
    content_type: str,
) -> tuple[bool, str | None]:
    """Upload a certificate file onto one entry.

    Returns ``(uploaded, replaced_url)``; the replaced object is left for the
    caller to discard once the profile is saved.
    """
    target = next((c for c in certifications if isinstance(c, dict) and not c.get("certificateUrl")), None)
    if target is None:
        target = certifications[0]
    if not isinstance(target, dict):
        raise single_field_error("data", "No valid certification found to attach certificate file")

    previous = None
    if target.get("id"):
        previous = next((c for c in stored if isinstance(c, dict) and c.get("id") == target["id"]), None)

    try:
        result = storage.upload(
            files.CERTIFICATES,
            files.unique_filename(user_id, certificate.filename),
            certificate.content,
            content_type,
        )
    except StorageError as e:
        logger.warning(f"Certificate upload failed: {e.message}", extra={"user_id": user_id})
        return False, None

    target["certificateUrl"] = result["fileUrl"]
    target["fileName"] = result["fileName"]
    target["fileSize"] = certificate.size
    replaced = previous.get("certificateUrl") if previous else None
    return True, replaced if replaced != result["fileUrl"] else None


def edit_profile(
    db: Session,
    storage: ObjectStorage,
    user_id: str,
    field: str,
    data,
    certificate: Upload | None = None,
    multipart: bool = False,
) -> dict:
    """Replace one top-level section of the profile."""
    profile = _require_profile(db, user_id)
    stored_certifications = list((profile.profile_data or {}).get("certifications") or [])

    data = unwrap_nested(field, copy.deepcopy(data))

    content_type = None
    if multipart and field == "certifications":
        if not isinstance(data, list):
            raise single_field_error("data", "Certifications must be an array", "Certifications data must be an array")
        if not data:
            raise single_field_error(
                "data", "At least one certification is required", "Certifications array cannot be empty"
            )
        if certificate is not None:
            content_type = files.check_upload(
                certificate.filename, certificate.size, files.CERTIFICATE_TYPES, "certificate"
            )

    errors = validate_profile_field(data, field, profile.role)
    if errors:
        raise ValidationFailedError("Profile field validation failed", errors)

    warning = None
    replaced_url = None
    if content_type is not None:
        uploaded, replaced_url = _attach_certificate(
            storage, user_id, data, stored_certifications, certificate, content_type
        )
        if not uploaded:
            warning = CERTIFICATE_UPLOAD_WARNING

    merged = normalize_profile_data(profile.profile_data)
    merged[field] = data
    _save(db, profile, merged)
    logger.info(f"Profile field '{field}' updated", extra={"user_id": user_id, "field": field})

    if replaced_url:
        files.discard(storage, replaced_url, files.CERTIFICATES)

    if field == "certifications" and not multipart and isinstance(data, list):
        kept_ids = {c.get("id") for c in data if isinstance(c, dict) and c.get("id")}
        for old in stored_certifications:
            if isinstance(old, dict) and old.get("id") and old["id"] not in kept_ids and old.get("certificateUrl"):
                files.discard(storage, old["certificateUrl"], files.CERTIFICATES)

    result = {
        "profile_id": profile.user_id,
        "user_id": profile.user_id,
        "profile_data": profile.profile_data,
        "updated_at": profile.updated_at,
    }
    if warning:
        result["warning"] = warning
    return result


# File fields

_FILE_FIELDS = {
    "resume": (files.RESUMES, files.RESUME_TYPES),
    "avatar": (files.AVATARS, files.IMAGE_TYPES),
    "banner": (files.USER_BANNERS, files.IMAGE_TYPES),
}


def upload_profile_file(db: Session, storage: ObjectStorage, user_id: str, key: str, upload: Upload) -> dict:
    """Store a resume, avatar or banner and replace the previous one."""
    folder, allowed = _FILE_FIELDS[key]
    profile = _require_profile(db, user_id)

    stored = files.store_upload(storage, user_id, upload, folder, allowed, key)
    data = normalize_profile_data(profile.profile_data)
    previous = data.get(key)
    data[key] = stored
    _save(db, profile, data)
    logger.info(f"Profile {key} uploaded", extra={"user_id": user_id})

    if isinstance(previous, dict) and previous.get("fileUrl"):
        files.discard(storage, previous["fileUrl"], folder)

    return {"user_id": user_id, key: stored, "updated_at": profile.updated_at}


def remove_profile_file(db: Session, storage: ObjectStorage, user_id: str, key: str) -> dict:
    folder, _ = _FILE_FIELDS[key]
    profile = _require_profile(db, user_id)
    data = normalize_profile_data(profile.profile_data)
    previous = data.get(key)
    if isinstance(previous, dict) and previous.get("fileUrl"):
        files.discard(storage, previous["fileUrl"], folder)
    data[key] = None
    _save(db, profile, data)
    return {"user_id": user_id, key: None}


# Search


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            curr.append(min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + (ca != cb)))
        prev = curr
    return prev[-1]


def _search_item(profile: UserProfile) -> dict:
    info = (profile.profile_data or {}).get("personal_information") or {}
    return {
        "user_id": profile.user_id,
        "first_name": info.get("first_name") or None,
        "last_name": info.get("last_name") or None,
        "avatar_url": profile_avatar(profile.profile_data),
    }


def search_profiles(db: Session, q: str | None, page: int = 1, limit: int = 20, sort: str | None = None) -> dict:
    page, limit = paging.clamp(page, limit)
    term = (q or "").strip()

    if not term:
        if sort != "recent":
            raise single_field_error("q", "Search query is required")
        total = db.query(UserProfile).count()
        rows = (
            db.query(UserProfile)
            .order_by(UserProfile.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "results": [_search_item(p) for p in rows],
            "page": page,
            "limit": limit,
            "has_more": (page - 1) * limit + len(rows) < total,
            "total_candidates": total,
        }

    needle = term.lower()
    scored = []
    for profile in db.query(UserProfile).all():
        item = _search_item(profile)
        first = (item["first_name"] or "").lower()
        last = (item["last_name"] or "").lower()
        full = f"{first} {last}".strip()
        if needle not in first and needle not in last and needle not in full:
            continue
        score = min(levenshtein(needle, name) for name in (first, last, full))
        scored.append((score, item))

    scored.sort(key=lambda pair: pair[0])
    end = page * limit
    return {
        "results": [item for _, item in scored[end - limit:end]],
        "page": page,
        "limit": limit,
        "has_more": end < len(scored),
        "total_candidates": len(scored),
    }


# Views


def _connection_view(data: dict, privacy: dict) -> dict:
    if privacy.get("skills_visibility") is False:
        data.pop("skills", None)
    if privacy.get("experience_visibility") == "Hidden":
        data.pop("experience", None)
    if privacy.get("contact_visibility") == "Hidden" and isinstance(data.get("personal_information"), dict):
        for key in CONTACT_KEYS:
            data["personal_information"].pop(key, None)
    return data


def _public_view(data: dict, privacy: dict) -> dict:
    allowed = {
        "personal_information": dict(data.get("personal_information") or {}),
        "about": data.get("about") or {},
        "avatar": (data.get("avatar") or {}).get("fileUrl") if isinstance(data.get("avatar"), dict) else None,
        "banner": (data.get("banner") or {}).get("fileUrl") if isinstance(data.get("banner"), dict) else None,
        "skills": data.get("skills") or [],
        "projects": data.get("projects") or [],
        "education": data.get("education") or [],
        "experience": data.get("experience") or [],
    }
    if privacy.get("experience_visibility") in ("Connections Only", "Hidden"):
        allowed.pop("experience")
    if privacy.get("contact_visibility") in ("Connections Only", "Hidden"):
        for key in CONTACT_KEYS:
            allowed["personal_information"].pop(key, None)
    if privacy.get("skills_visibility") is False:
        allowed.pop("skills")
    return {"visibility_allowed_fields": allowed}


def get_profile_view(db: Session, user_id: str, viewer_id: str | None) -> dict:
    """The profile as ``viewer_id`` may see it (owner, connection or public)."""
    try:
        uuid.UUID(user_id)
    except ValueError:
        raise single_field_error("user_id", "Invalid user ID format") from None

    profile = _load_profile(db, user_id)
    if not profile:
        raise ProfileNotFoundError("User not found")

    data = copy.deepcopy(profile.profile_data or {})
    privacy = profile.privacy_settings or {}
    if viewer_id == user_id:
        view = "owner"
    elif viewer_id and is_connected(db, viewer_id, user_id):
        view = "connection"
        data = _connection_view(data, privacy)
    else:
        view = "public"
        data = _public_view(data, privacy)

    return {
        "id": profile.user_id,
        "role": profile.role,
        "profile_data": data,
        "privacy_settings": privacy,
        "created_at": profile.created_at,
        "updated_at": profile.updated_at,
        "view": view,
    }
