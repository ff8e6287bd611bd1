"""Team invitation endpoints.

``profile_router`` is mounted under ``/business-profile`` (owner/admin side);
``router`` under ``/invitations`` (recipient side).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.api.schemas import InvitationCreate
from b2b_backend.db import get_db
from b2b_backend.services import invitations

router = APIRouter()
profile_router = APIRouter()


@profile_router.post("/{profile_id}/invitations", status_code=201)
def send_invitation(
    profile_id: str,
    data: InvitationCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Invite a user (by id or email) to join as admin or editor."""
    return invitations.send_invitation(db, profile_id, user_id, data.invitee, data.role)


@profile_router.get("/{profile_id}/invitations")
def list_invitations(
    profile_id: str,
    status: str | None = "all",
    page: int = 1,
    limit: int = 10,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return invitations.list_profile_invitations(db, profile_id, user_id, status, page, limit)


@profile_router.delete("/{profile_id}/invitations/{invitation_id}")
def cancel_invitation(
    profile_id: str,
    invitation_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return invitations.cancel_invitation(db, profile_id, user_id, invitation_id)


@router.get("/received")
def received_invitations(
    status: str | None = "pending",
    page: int = 1,
    limit: int = 10,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Invitations addressed to the caller."""
    return invitations.received_invitations(db, user_id, status, page, limit)


@router.put("/{profile_id}/{invitation_id}/accept")
def accept_invitation(
    profile_id: str,
    invitation_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return invitations.accept_invitation(db, profile_id, user_id, invitation_id)


@router.put("/{profile_id}/{invitation_id}/decline")
def decline_invitation(
    profile_id: str,
    invitation_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return invitations.decline_invitation(db, profile_id, user_id, invitation_id)
