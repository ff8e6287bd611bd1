"""Account lifecycle: registration, login, tutorial flag, deactivation, deletion and roles."""

import logging
import re
from datetime import timedelta

from sqlalchemy.orm import Session

from b2b_backend.config import settings
from b2b_backend.db import User, UserProfile, commit_or_conflict
from b2b_backend.db.tables import as_utc, utcnow
from b2b_backend.errors import (
    AuthenticationError,
    ConflictError,
    UserNotFoundError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services.security import create_tokens, hash_password, verify_password

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

ROLES = {
    "student": "Student looking for internships and entry-level roles",
    "professional": "Working professional",
    "business": "Business account managing company pages",
}
PERSONAL_ROLES = ("student", "professional")
TUTORIAL_STATUSES = ("incomplete", "complete", "skipped")


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "tutorial_status": user.tutorial_status,
    }


def _validate_credentials(email: str, password: str) -> list[dict]:
    errors = []
    if not email or not EMAIL_PATTERN.match(email):
        errors.append({"field": "email", "message": "Please provide a valid email address"})
    if not password or len(password) < 8:
        errors.append({"field": "password", "message": "Password must be at least 8 characters long"})
    elif not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
        errors.append({"field": "password", "message": "Password must contain at least one letter and one number"})
    return errors


def _grace_expired(user: User) -> bool:
    deleted_at = as_utc(user.deleted_at)
    return deleted_at is not None and utcnow() - deleted_at > timedelta(days=settings.account_deletion_grace_days)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFoundError()
    return user


def register(db: Session, email: str, password: str, remember_me: bool = False) -> dict:
    email = (email or "").strip().lower()
    errors = _validate_credentials(email, password)
    if errors:
        raise ValidationFailedError("Validation failed", errors)

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        if not _grace_expired(existing):
            raise ConflictError("Email already exists", "EMAIL_EXISTS")
        # Release the address held by an account past its deletion grace period
        existing.email = f"deleted+{existing.id}@{email.split('@', 1)[1]}"
        db.flush()

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    commit_or_conflict(db, "Email already exists", "EMAIL_EXISTS")
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})

    return {"user": serialize_user(user), "tokens": create_tokens(user.id, user.email, user.role, remember_me)}


def login(db: Session, email: str, password: str, remember_me: bool = False) -> dict:
    email = (email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or _grace_expired(user) or not verify_password(password or "", user.password_hash):
        raise AuthenticationError("Invalid credentials")

    if user.deleted_at is not None:
        user.deleted_at = None
        user.updated_at = utcnow()
        logger.info("Account restored within grace period", extra={"user_id": user.id})
    if not user.active:
        user.active = True
        user.updated_at = utcnow()
        logger.info("Account reactivated on login", extra={"user_id": user.id})
    db.commit()
    db.refresh(user)

    return {"user": serialize_user(user), "tokens": create_tokens(user.id, user.email, user.role, remember_me)}


def update_tutorial_status(db: Session, user_id: str, status: str | None) -> dict:
    if status not in TUTORIAL_STATUSES:
        raise single_field_error(
            "tutorial_status",
            f"Invalid tutorial status. Must be one of: {', '.join(TUTORIAL_STATUSES)}",
        )
    user = get_user(db, user_id)
    user.tutorial_status = status
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)
    return {"user": serialize_user(user)}


def deactivate(db: Session, user_id: str) -> dict:
    user = get_user(db, user_id)
    user.active = False
    user.updated_at = utcnow()
    db.commit()
    logger.info("Account deactivated", extra={"user_id": user_id})
    return {"user_id": user_id, "active": False}


def delete(db: Session, user_id: str) -> dict:
    """Soft delete; the account can be restored by logging in within the grace period."""
    user = get_user(db, user_id)
    if user.deleted_at is not None:
        raise ValidationFailedError("User account is already deleted", code="ACCOUNT_ALREADY_DELETED")
    user.deleted_at = utcnow()
    user.updated_at = user.deleted_at
    db.commit()
    logger.info("Account scheduled for deletion", extra={"user_id": user_id})
    return {
        "user_id": user_id,
        "deleted_at": user.deleted_at,
        "grace_period_days": settings.account_deletion_grace_days,
    }


# Roles


def list_roles() -> list[dict]:
    return [{"name": name, "description": description} for name, description in ROLES.items()]


def get_role_status(db: Session, user_id: str) -> dict:
    user = get_user(db, user_id)
    return {"user_id": user.id, "role": user.role, "has_role": user.role is not None}


def assign_role(db: Session, user_id: str, role: str | None) -> dict:
    if role not in ROLES:
        raise single_field_error("role", f"Role '{role}' not found")
    user = get_user(db, user_id)
    user.role = role
    user.updated_at = utcnow()

    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile and role in PERSONAL_ROLES:
        profile.role = role
        profile.updated_at = utcnow()

    db.commit()
    db.refresh(user)
    logger.info(f"Role set to {role}", extra={"user_id": user_id})
    return {
        "user": serialize_user(user),
        "tokens": create_tokens(user.id, user.email, user.role),
    }
