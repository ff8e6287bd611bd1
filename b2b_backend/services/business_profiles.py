"""
Business profiles: creation, access checks and privacy settings.

A profile lives in ``company_pages``; its sections (about, projects, private
info, media, achievements) are keys of ``company_profile_data`` and are
handled in ``business_sections``.
"""

import copy
import logging
import re

from sqlalchemy.orm import Session

from b2b_backend.db import CompanyPage, CompanyPageMember
from b2b_backend.db.tables import utcnow
from b2b_backend.errors import (
    BusinessProfileNotFoundError,
    BusinessProfilePermissionError,
    DuplicateCompanyNameError,
    OwnerOnlyError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging

logger = logging.getLogger(__name__)

COMPANY_TYPES = ("Private", "Public", "Partnership", "Sole Proprietorship", "Non-Profit", "Other")
PROFILE_VISIBILITY = ("public", "registered_users", "private", "unlisted")
CONTACT_VISIBILITY = ("public", "connections", "private")
SECTION_VISIBILITY = ("public", "private", "connections")
MEMBER_ROLES = ("admin", "editor")

COMPANY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9&\-.\s]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

MAX_EXTRA_CONTACTS = 10

DEFAULT_PRIVACY_SETTINGS = {
    "profile_visibility": "public",
    "contact_visibility": "connections",
    "projects_visibility": "public",
    "posts_visibility": "public",
    "achievements_visibility": "public",
    "show_email": False,
    "show_phone": False,
    "allow_messages": True,
    "allow_connection_requests": True,
}
_VISIBILITY_SETTINGS = ("profile_visibility", "contact_visibility", "projects_visibility", "posts_visibility",
                        "achievements_visibility")
_BOOLEAN_SETTINGS = ("show_email", "show_phone", "allow_messages", "allow_connection_requests")


def clean_text(value) -> str:
    """Trimmed string form of a scalar; empty for None."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


# Company data validation


def _text_field(data, out, errors, key, message, min_len=0, max_len=None, required=False, pattern=None):
    if key not in data or data[key] is None or clean_text(data[key]) == "":
        if required:
            errors.append({"field": key, "message": message})
        return
    if not isinstance(data[key], str):
        errors.append({"field": key, "message": message})
        return
    value = data[key].strip()
    if len(value) < min_len or (max_len is not None and len(value) > max_len):
        errors.append({"field": key, "message": message})
    elif pattern is not None and not pattern.match(value):
        errors.append({"field": key, "message": message})
    else:
        out[key] = value


def _list_field(data, out, errors, key, message, normalize, pattern):
    if data.get(key) is None:
        return
    values = data[key]
    if not isinstance(values, list) or len(values) > MAX_EXTRA_CONTACTS:
        errors.append({"field": key, "message": message})
        return
    cleaned = []
    for value in values:
        value = normalize(value) if isinstance(value, str) else ""
        if not pattern.match(value):
            errors.append({"field": key, "message": message})
            return
        cleaned.append(value)
    out[key] = cleaned


def _privacy_field(privacy, out, errors, key, allowed, default):
    value = privacy.get(key, default)
    if value not in allowed:
        errors.append({"field": f"privacy_settings.{key}", "message": f"Must be one of: {', '.join(allowed)}"})
    else:
        out[key] = value


def validate_company_data(data) -> tuple[dict, dict, list[dict]]:
    """Validate and sanitise a create payload. Returns ``(profile_data, privacy_settings, errors)``."""
    if not isinstance(data, dict):
        return {}, {}, [{"field": "profile_data", "message": "Business profile data must be an object"}]

    out: dict = {}
    errors: list[dict] = []

    _text_field(
        data, out, errors, "companyName",
        "Company name must be 3-100 characters and may only include letters, numbers, spaces, &, -, .",
        3, 100, required=True, pattern=COMPANY_NAME_PATTERN,
    )

    company_type = clean_text(data.get("company_type"))
    if company_type not in COMPANY_TYPES:
        errors.append({"field": "company_type", "message": "Company type must be selected from the provided options"})
    else:
        out["company_type"] = company_type

    _text_field(data, out, errors, "industry", "Industry is required", 2, 100, required=True)
    _text_field(data, out, errors, "tagline", "Tagline cannot exceed 150 characters", 0, 150)

    size = data.get("company_size")
    if isinstance(size, str) and size.strip().isdigit():
        size = int(size.strip())
    if isinstance(size, bool) or not isinstance(size, (int, float)) or not 1 <= size <= 100:
        errors.append({"field": "company_size", "message": "Company size must be between 1 and 100"})
    else:
        out["company_size"] = size

    _text_field(
        data, out, errors, "headquater_location", "Headquarter location must be between 5 and 500 characters",
        5, 500, required=True,
    )
    _text_field(data, out, errors, "location", "Location must be between 2 and 500 characters when provided", 2, 500)
    _text_field(
        data, out, errors, "company_website", "Website must be a valid URL starting with http:// or https://",
        pattern=URL_PATTERN,
    )

    email = clean_text(data.get("primary_email")).lower()
    if not EMAIL_PATTERN.match(email):
        errors.append({"field": "primary_email", "message": "Primary email must be a valid email address"})
    else:
        out["primary_email"] = email

    _list_field(
        data, out, errors, "additional_email", "Additional emails must be valid email addresses (max 10)",
        lambda v: v.strip().lower(), EMAIL_PATTERN,
    )

    phone = re.sub(r"\s+", "", clean_text(data.get("phone_number")))
    if not PHONE_PATTERN.match(phone):
        errors.append({"field": "phone_number", "message": "Primary phone number must be in international E.164 format"})
    else:
        out["phone_number"] = phone

    _list_field(
        data, out, errors, "additional_phone_numbers",
        "Additional phone numbers must be valid phone numbers (max 10)",
        lambda v: re.sub(r"\s+", "", v), PHONE_PATTERN,
    )

    privacy_in = data.get("privacy_settings") or {}
    privacy: dict = {}
    if not isinstance(privacy_in, dict):
        errors.append({"field": "privacy_settings", "message": "Privacy settings must be an object"})
    else:
        _privacy_field(privacy_in, privacy, errors, "profile_visibility", PROFILE_VISIBILITY, "public")
        _privacy_field(privacy_in, privacy, errors, "contact_visibility", CONTACT_VISIBILITY, "public")

    return out, privacy, errors


# Lookups and access checks


def get_page(db: Session, profile_id: str) -> CompanyPage:
    page = db.query(CompanyPage).filter(CompanyPage.id == profile_id).first()
    if not page:
        raise BusinessProfileNotFoundError()
    return page


def get_member(db: Session, profile_id: str, user_id: str) -> CompanyPageMember | None:
    return (
        db.query(CompanyPageMember)
        .filter(CompanyPageMember.company_page_id == profile_id, CompanyPageMember.user_id == user_id)
        .first()
    )


def member_role(db: Session, page: CompanyPage, user_id: str | None) -> str | None:
    """``owner``, the member's role, or None for outsiders."""
    if not user_id:
        return None
    if page.owner_id == user_id:
        return "owner"
    member = get_member(db, page.id, user_id)
    return member.role if member else None


def require_write_access(db: Session, profile_id: str, user_id: str) -> CompanyPage:
    """The page, if ``user_id`` is its owner or an admin."""
    page = get_page(db, profile_id)
    if member_role(db, page, user_id) not in ("owner", "admin"):
        logger.warning(f"Write access denied on business profile {profile_id}", extra={"user_id": user_id})
        raise BusinessProfilePermissionError()
    return page


def require_owner(db: Session, profile_id: str, user_id: str, action: str) -> CompanyPage:
    page = get_page(db, profile_id)
    if page.owner_id != user_id:
        raise OwnerOnlyError(action)
    return page


def save_page_data(db: Session, page: CompanyPage, data: dict):
    page.company_profile_data = data
    page.updated_at = utcnow()
    db.commit()
    db.refresh(page)


def page_data(page: CompanyPage) -> dict:
    """A detached copy of the page's profile data, safe to mutate."""
    return copy.deepcopy(page.company_profile_data or {})


# Profiles


def _name_taken(db: Session, company_name: str) -> bool:
    wanted = company_name.strip().lower()
    return any(
        (page.company_name or "").strip().lower() == wanted
        for page in db.query(CompanyPage).all()
    )


def serialize_page(page: CompanyPage, role: str | None = None) -> dict:
    return {
        "profile_id": page.id,
        "owner_id": page.owner_id,
        "role": role,
        "profile_data": page.company_profile_data or {},
        "privacy_settings": page.privacy_settings or {},
        "is_active": page.is_active,
        "created_at": page.created_at,
        "updated_at": page.updated_at,
    }


def create_business_profile(db: Session, owner_id: str, payload) -> dict:
    profile_data, privacy, errors = validate_company_data(payload)
    if errors:
        raise ValidationFailedError("Business profile validation failed", errors)
    if _name_taken(db, profile_data["companyName"]):
        raise DuplicateCompanyNameError()

    page = CompanyPage(owner_id=owner_id, company_profile_data=profile_data, privacy_settings=privacy)
    db.add(page)
    db.commit()
    db.refresh(page)
    logger.info(f"Business profile {page.id} created", extra={"user_id": owner_id, "profile_id": page.id})
    return serialize_page(page, "owner")


def get_business_profile(db: Session, profile_id: str, viewer_id: str | None) -> dict:
    page = get_page(db, profile_id)
    return serialize_page(page, member_role(db, page, viewer_id))


# Pages of a user

COMPANY_PAGE_ROLES = ("all", "owner", "admin", "editor")


def _page_card(page: CompanyPage, role: str, joined_at, last_active) -> dict:
    data = page.company_profile_data or {}
    return {
        "profile_id": page.id,
        "company_name": page.company_name,
        "company_type": data.get("company_type"),
        "industry": data.get("industry"),
        "logo": (data.get("avatar") or {}).get("fileUrl"),
        "banner": (data.get("banner") or {}).get("fileUrl"),
        "role": role,
        "is_active": page.is_active,
        "joined_at": joined_at,
        "last_active": last_active,
    }


def list_company_pages(
    db: Session,
    user_id: str,
    role: str = "all",
    include_inactive: bool = False,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """Pages the user owns or is a team member of, newest membership first."""
    if role not in COMPANY_PAGE_ROLES:
        raise single_field_error("role", f"Role must be one of: {', '.join(COMPANY_PAGE_ROLES)}")
    page, limit = paging.clamp(page, limit, default_limit=10, max_limit=50)

    cards = [
        _page_card(p, "owner", p.created_at, p.updated_at)
        for p in db.query(CompanyPage).filter(CompanyPage.owner_id == user_id).all()
    ]
    memberships = db.query(CompanyPageMember).filter(CompanyPageMember.user_id == user_id).all()
    cards += [_page_card(m.company_page, m.role, m.created_at, m.updated_at) for m in memberships]

    summary = {
        "total_companies": len(cards),
        "owner_roles": sum(1 for c in cards if c["role"] == "owner"),
        "admin_roles": sum(1 for c in cards if c["role"] == "admin"),
        "editor_roles": sum(1 for c in cards if c["role"] == "editor"),
        "active_companies": sum(1 for c in cards if c["is_active"]),
    }
    if role != "all":
        cards = [c for c in cards if c["role"] == role]
    if not include_inactive:
        cards = [c for c in cards if c["is_active"]]
    cards.sort(key=lambda c: c["joined_at"], reverse=True)

    pages = paging.total_pages(len(cards), limit)
    return {
        "company_pages": paging.window(cards, page, limit),
        "pagination": {
            "total": len(cards),
            "page": page,
            "limit": limit,
            "total_pages": pages,
            "has_next_page": page < pages,
            "has_prev_page": page > 1,
        },
        "summary": summary,
    }


# Privacy settings


def get_privacy_settings(db: Session, profile_id: str) -> dict:
    page = get_page(db, profile_id)
    return {"profile_id": page.id, "privacy_settings": {**DEFAULT_PRIVACY_SETTINGS, **(page.privacy_settings or {})}}


def validate_privacy_settings(update: dict) -> list[dict]:
    errors = []
    for key in _VISIBILITY_SETTINGS:
        if key in update and update[key] not in SECTION_VISIBILITY:
            errors.append({"field": key, "message": f"Must be one of: {', '.join(SECTION_VISIBILITY)}"})
    for key in _BOOLEAN_SETTINGS:
        if key in update and not isinstance(update[key], bool):
            errors.append({"field": key, "message": "Must be a boolean (true or false)"})
    return errors


def update_privacy_settings(db: Session, profile_id: str, user_id: str, update) -> dict:
    page = require_write_access(db, profile_id, user_id)
    if not isinstance(update, dict) or not update:
        raise ValidationFailedError(
            "Privacy settings must be provided",
            [{"field": "privacy_settings", "message": "At least one setting must be provided"}],
        )
    errors = validate_privacy_settings(update)
    if errors:
        raise ValidationFailedError("Invalid privacy settings", errors)

    page.privacy_settings = {**DEFAULT_PRIVACY_SETTINGS, **(page.privacy_settings or {}), **update}
    page.updated_at = utcnow()
    db.commit()
    db.refresh(page)
    logger.info("Business privacy settings updated", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profile_id": page.id, "privacy_settings": page.privacy_settings}


def reset_privacy_settings(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_write_access(db, profile_id, user_id)
    page.privacy_settings = dict(DEFAULT_PRIVACY_SETTINGS)
    page.updated_at = utcnow()
    db.commit()
    db.refresh(page)
    return {"profile_id": page.id, "privacy_settings": page.privacy_settings}
