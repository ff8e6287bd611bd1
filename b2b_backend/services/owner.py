"""
Owner-only operations on a business profile: activation state, team roles
and deletion.
"""

import logging

from sqlalchemy.orm import Session

from b2b_backend.db import CompanyPageMember, Notification
from b2b_backend.db.tables import as_utc, utcnow
from b2b_backend.errors import MemberNotFoundError, ValidationFailedError
from b2b_backend.services import paging
from b2b_backend.services.business_profiles import require_owner
from b2b_backend.services.invitations import INVITATION
from b2b_backend.services.people import user_summaries

logger = logging.getLogger(__name__)

_ROLE_ORDER = {"owner": 0, "admin": 1, "editor": 2}


def permissions_for(role: str) -> dict:
    manager = role in ("owner", "admin")
    return {"canManagePosts": True, "canManageProfile": manager, "canManagePages": manager}


def deactivate(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_owner(db, profile_id, user_id, "deactivate business page")
    page.is_active = False
    page.updated_at = utcnow()
    db.commit()
    logger.info("Business profile deactivated", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profileId": page.id, "profileName": page.company_name, "isActive": False, "deactivatedAt": page.updated_at}


def reactivate(db: Session, profile_id: str, user_id: str) -> dict:
    page = require_owner(db, profile_id, user_id, "reactivate business profile")
    if page.is_active:
        raise ValidationFailedError("Business profile is already active", code="ALREADY_ACTIVE")
    page.is_active = True
    page.updated_at = utcnow()
    db.commit()
    logger.info("Business profile reactivated", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profileId": page.id, "profileName": page.company_name, "isActive": True, "reactivatedAt": page.updated_at}


def list_members(db: Session, profile_id: str, user_id: str, page_number: int = 1, limit: int = 20) -> dict:
    page = require_owner(db, profile_id, user_id, "view members")
    page_number, limit = paging.clamp(page_number, limit)

    rows = (
        db.query(CompanyPageMember)
        .filter(CompanyPageMember.company_page_id == profile_id, CompanyPageMember.user_id != page.owner_id)
        .all()
    )
    rows.sort(key=lambda m: (_ROLE_ORDER.get(m.role, 3), as_utc(m.created_at)))
    people = user_summaries(db, [page.owner_id, *(m.user_id for m in rows)])

    def entry(member_id, member_user_id, role, joined_at):
        person = people.get(member_user_id) or {}
        return {
            "memberId": member_id,
            "userId": member_user_id,
            "role": role,
            "name": person.get("name") or "Unknown",
            "avatar": person.get("avatar"),
            "permissions": permissions_for(role),
            "joinedAt": joined_at,
        }

    members = [entry(page.owner_id, page.owner_id, "owner", page.created_at)]
    members += [entry(m.id, m.user_id, m.role, m.created_at) for m in rows]

    start = (page_number - 1) * limit
    return {
        "members": paging.window(members, page_number, limit),
        "pagination": {
            "page": page_number,
            "limit": limit,
            "total": len(members),
            "hasMore": start + limit < len(members),
        },
    }


def _member(db: Session, profile_id: str, member_id: str) -> CompanyPageMember:
    member = (
        db.query(CompanyPageMember)
        .filter(CompanyPageMember.id == member_id, CompanyPageMember.company_page_id == profile_id)
        .first()
    )
    if not member:
        raise MemberNotFoundError()
    return member


def _change_role(db: Session, member: CompanyPageMember, expected: str, new_role: str, verb: str) -> dict:
    if member.role != expected:
        raise ValidationFailedError(f"Can only {verb} members with {expected} role", code="INVALID_ROLE_CHANGE")
    member.role = new_role
    member.updated_at = utcnow()
    db.commit()
    db.refresh(member)
    return {
        "memberId": member.id,
        "userId": member.user_id,
        "profileId": member.company_page_id,
        "previousRole": expected,
        "currentRole": new_role,
        "permissions": permissions_for(new_role),
        f"{verb}dAt": member.updated_at,
    }


def promote(db: Session, profile_id: str, user_id: str, member_id: str) -> dict:
    require_owner(db, profile_id, user_id, "promote members")
    result = _change_role(db, _member(db, profile_id, member_id), "editor", "admin", "promote")
    logger.info(f"Member {member_id} promoted to admin", extra={"user_id": user_id, "profile_id": profile_id})
    return result


def demote(db: Session, profile_id: str, user_id: str, member_id: str) -> dict:
    require_owner(db, profile_id, user_id, "demote members")
    result = _change_role(db, _member(db, profile_id, member_id), "admin", "editor", "demote")
    logger.info(f"Member {member_id} demoted to editor", extra={"user_id": user_id, "profile_id": profile_id})
    return result


def remove_member(db: Session, profile_id: str, user_id: str, member_id: str) -> dict:
    page = require_owner(db, profile_id, user_id, "remove members")
    if member_id == page.owner_id:
        raise ValidationFailedError("Cannot remove the profile owner", code="OWNER_NOT_REMOVABLE")
    member = _member(db, profile_id, member_id)
    removed_user = member.user_id
    db.delete(member)
    db.commit()
    logger.info(f"Member {member_id} removed", extra={"user_id": user_id, "profile_id": profile_id})
    return {"memberId": member_id, "userId": removed_user, "profileId": profile_id, "removedAt": utcnow()}


def delete_profile(db: Session, profile_id: str, user_id: str) -> dict:
    """Delete the page with its members, jobs, applications and invitations."""
    page = require_owner(db, profile_id, user_id, "delete business profile")
    name = page.company_name
    db.query(Notification).filter(
        Notification.type == INVITATION,
        Notification.payload["profileId"].as_string() == profile_id,
    ).delete(synchronize_session=False)
    db.delete(page)
    db.commit()
    logger.info("Business profile deleted", extra={"user_id": user_id, "profile_id": profile_id})
    return {"profileId": profile_id, "profileName": name, "deletedAt": utcnow()}
