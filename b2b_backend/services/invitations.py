"""
Team invitations for business profiles.

An invitation is a ``business_profile_invitation`` notification addressed to
the invitee. Its payload tracks the status:
pending -> accepted | declined | cancelled.
"""

import logging
import uuid

from sqlalchemy import func
from sqlalchemy.orm import Session

from b2b_backend.db import CompanyPageMember, Notification, User
from b2b_backend.db.base import commit_or_conflict
from b2b_backend.errors import (
    InvalidRoleError,
    InvitationAlreadyAcceptedError,
    InvitationAlreadyDeclinedError,
    InvitationNotForUserError,
    InvitationNotFoundError,
    PendingInvitationExistsError,
    UserAlreadyMemberError,
    UserNotFoundError,
    ValidationFailedError,
    single_field_error,
)
from b2b_backend.services import paging
from b2b_backend.services.business_profiles import MEMBER_ROLES, get_member, get_page, require_write_access
from b2b_backend.services.people import profile_avatar, user_summaries

logger = logging.getLogger(__name__)

INVITATION = "business_profile_invitation"
INVITATION_STATUSES = ("pending", "accepted", "declined", "cancelled")


def _find_user(db: Session, invitee: str) -> User | None:
    invitee = (invitee or "").strip()
    if not invitee:
        return None
    query = db.query(User).filter(User.deleted_at.is_(None))
    try:
        uuid.UUID(invitee)
    except ValueError:
        return query.filter(func.lower(User.email) == invitee.lower()).first()
    return query.filter(User.id == invitee).first()


def _profile_invitations(db: Session, profile_id: str):
    return db.query(Notification).filter(
        Notification.type == INVITATION,
        Notification.payload["profileId"].as_string() == profile_id,
    )


def _status_filter(query, status: str | None):
    if status and status != "all":
        if status not in INVITATION_STATUSES:
            raise single_field_error("status", f"Status must be one of: all, {', '.join(INVITATION_STATUSES)}")
        query = query.filter(Notification.payload["status"].as_string() == status)
    return query


def _set_status(invitation: Notification, status: str):
    invitation.payload = {**(invitation.payload or {}), "status": status}


def _pagination(total: int, page: int, limit: int) -> dict:
    pages = paging.total_pages(total, limit)
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": pages,
        "hasNextPage": page < pages,
        "hasPrevPage": page > 1,
    }


# Owner/admin side


def send_invitation(db: Session, profile_id: str, inviter_id: str, invitee: str, role: str) -> dict:
    page = require_write_access(db, profile_id, inviter_id)
    if role not in MEMBER_ROLES:
        raise InvalidRoleError()
    user = _find_user(db, invitee)
    if not user:
        raise UserNotFoundError()
    if user.id in (inviter_id, page.owner_id) or get_member(db, profile_id, user.id):
        raise UserAlreadyMemberError()
    pending = _profile_invitations(db, profile_id).filter(
        Notification.user_id == user.id,
        Notification.payload["status"].as_string() == "pending",
    )
    if pending.first():
        raise PendingInvitationExistsError()

    people = user_summaries(db, [inviter_id, user.id])
    inviter = people.get(inviter_id) or {"name": "", "email": ""}
    profile_name = page.company_name or "Unknown Company"
    invitation = Notification(
        user_id=user.id,
        type=INVITATION,
        content=f"{inviter['name']} invited you to join {profile_name} as an {role.capitalize()}",
        payload={
            "status": "pending",
            "profileId": page.id,
            "profileName": profile_name,
            "profileLogo": profile_avatar(page.company_profile_data),
            "role": role,
            "invitedBy": {"userId": inviter_id, "name": inviter["name"], "email": inviter["email"]},
        },
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} sent to {user.id}", extra={"user_id": inviter_id, "profile_id": page.id})

    return {
        "invitationId": invitation.id,
        "profileId": page.id,
        "profileName": profile_name,
        "inviteeId": user.id,
        "inviteeEmail": user.email,
        "inviteeName": people[user.id]["name"],
        "role": role,
        "status": "pending",
        "invitedBy": invitation.payload["invitedBy"],
        "createdAt": invitation.created_at,
    }


def cancel_invitation(db: Session, profile_id: str, user_id: str, invitation_id: str) -> dict:
    require_write_access(db, profile_id, user_id)
    invitation = _profile_invitations(db, profile_id).filter(Notification.id == invitation_id).first()
    if not invitation:
        raise InvitationNotFoundError()
    if (invitation.payload or {}).get("status") != "pending":
        raise ValidationFailedError("Only pending invitations can be cancelled", code="INVITATION_NOT_PENDING")

    _set_status(invitation, "cancelled")
    db.commit()
    logger.info(f"Invitation {invitation_id} cancelled", extra={"user_id": user_id, "profile_id": profile_id})
    return {"invitationId": invitation.id, "status": "cancelled"}


def list_profile_invitations(
    db: Session, profile_id: str, user_id: str, status: str | None = "all", page: int = 1, limit: int = 10
) -> dict:
    require_write_access(db, profile_id, user_id)
    page, limit = paging.clamp(page, limit, default_limit=10)
    query = _status_filter(_profile_invitations(db, profile_id), status)

    total = query.count()
    rows = query.order_by(Notification.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    people = user_summaries(db, [r.user_id for r in rows])

    summary = dict.fromkeys(INVITATION_STATUSES, 0)
    for invitation in _profile_invitations(db, profile_id).all():
        state = (invitation.payload or {}).get("status")
        if state in summary:
            summary[state] += 1

    invitations = []
    for row in rows:
        person = people.get(row.user_id) or {}
        invitations.append(
            {
                "invitationId": row.id,
                "inviteeId": row.user_id,
                "inviteeEmail": person.get("email"),
                "inviteeName": person.get("name"),
                "inviteeAvatar": person.get("avatar"),
                "role": row.payload.get("role"),
                "status": row.payload.get("status"),
                "createdAt": row.created_at,
            }
        )
    return {"invitations": invitations, "pagination": _pagination(total, page, limit), "summary": summary}


# Recipient side


def _recipient_invitation(db: Session, profile_id: str, user_id: str, invitation_id: str) -> Notification:
    get_page(db, profile_id)
    invitation = _profile_invitations(db, profile_id).filter(Notification.id == invitation_id).first()
    if not invitation:
        raise InvitationNotFoundError()
    if invitation.user_id != user_id:
        raise InvitationNotForUserError()

    status = (invitation.payload or {}).get("status")
    if status == "accepted":
        raise InvitationAlreadyAcceptedError()
    if status == "declined":
        raise InvitationAlreadyDeclinedError()
    if status != "pending":
        raise ValidationFailedError("Invitation has been cancelled", code="INVITATION_CANCELLED")
    return invitation


def accept_invitation(db: Session, profile_id: str, user_id: str, invitation_id: str) -> dict:
    invitation = _recipient_invitation(db, profile_id, user_id, invitation_id)
    payload = invitation.payload
    invited_by = (payload.get("invitedBy") or {}).get("userId")

    _set_status(invitation, "accepted")
    invitation.read = True
    member = CompanyPageMember(company_page_id=profile_id, user_id=user_id, role=payload["role"], invited_by=invited_by)
    db.add(member)
    commit_or_conflict(db, "User is already a member", "USER_ALREADY_MEMBER")
    db.refresh(member)
    logger.info(f"Invitation {invitation_id} accepted", extra={"user_id": user_id, "profile_id": profile_id})

    return {
        "memberId": member.id,
        "userId": member.user_id,
        "profileId": member.company_page_id,
        "profileName": payload.get("profileName") or "Unknown Company",
        "role": member.role,
        "invitedBy": {
            "userId": invited_by or "",
            "name": (payload.get("invitedBy") or {}).get("name") or "",
        },
        "joinedAt": member.created_at,
    }


def decline_invitation(db: Session, profile_id: str, user_id: str, invitation_id: str) -> dict:
    invitation = _recipient_invitation(db, profile_id, user_id, invitation_id)
    _set_status(invitation, "declined")
    invitation.read = True
    db.commit()
    logger.info(f"Invitation {invitation_id} declined", extra={"user_id": user_id, "profile_id": profile_id})
    return {
        "invitationId": invitation.id,
        "profileName": invitation.payload.get("profileName") or "Unknown Company",
        "status": "declined",
    }


def received_invitations(db: Session, user_id: str, status: str | None = "pending", page: int = 1, limit: int = 10) -> dict:
    page, limit = paging.clamp(page, limit, default_limit=10)
    query = _status_filter(
        db.query(Notification).filter(Notification.user_id == user_id, Notification.type == INVITATION), status
    )
    total = query.count()
    rows = query.order_by(Notification.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    invitations = [
        {
            "invitationId": row.id,
            "profileId": row.payload.get("profileId"),
            "profileName": row.payload.get("profileName") or "Unknown Company",
            "profileLogo": row.payload.get("profileLogo"),
            "role": row.payload.get("role"),
            "status": row.payload.get("status"),
            "invitedBy": row.payload.get("invitedBy") or {},
            "message": row.content,
            "read": row.read,
            "createdAt": row.created_at,
        }
        for row in rows
    ]
    return {"invitations": invitations, "pagination": _pagination(total, page, limit)}
