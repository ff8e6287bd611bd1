"""Self-service actions for business profile members."""

import logging

from sqlalchemy.orm import Session

from b2b_backend.db.tables import utcnow
from b2b_backend.errors import MemberNotFoundError, ValidationFailedError
from b2b_backend.services.business_profiles import get_member, get_page

logger = logging.getLogger(__name__)


def _own_membership(db: Session, profile_id: str, user_id: str, action: str):
    page = get_page(db, profile_id)
    if page.owner_id == user_id:
        raise ValidationFailedError(f"Profile owner cannot {action} their role", code="OWNER_ROLE_LOCKED")
    member = get_member(db, profile_id, user_id)
    if not member:
        raise MemberNotFoundError("Member record not found")
    return member


def revoke_role(db: Session, profile_id: str, user_id: str) -> dict:
    """Leave the team."""
    member = _own_membership(db, profile_id, user_id, "revoke")
    role = member.role
    db.delete(member)
    db.commit()
    logger.info(f"Member left with role {role}", extra={"user_id": user_id, "profile_id": profile_id})
    return {"userId": user_id, "profileId": profile_id, "previousRole": role, "revokedAt": utcnow()}


def demote_self(db: Session, profile_id: str, user_id: str) -> dict:
    """Step down from admin to editor."""
    member = _own_membership(db, profile_id, user_id, "demote")
    if member.role == "editor":
        raise ValidationFailedError("Cannot demote. Editor is the lowest role", code="LOWEST_ROLE")

    previous = member.role
    member.role = "editor"
    member.updated_at = utcnow()
    db.commit()
    db.refresh(member)
    logger.info("Member demoted themselves to editor", extra={"user_id": user_id, "profile_id": profile_id})
    return {
        "userId": user_id,
        "profileId": profile_id,
        "previousRole": previous,
        "currentRole": member.role,
        "demotedAt": member.updated_at,
    }
