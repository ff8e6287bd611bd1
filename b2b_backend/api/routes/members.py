"""Member self-service endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.db import get_db
from b2b_backend.services import members

router = APIRouter()


@router.delete("/{profile_id}/members/revoke")
def revoke_role(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Leave the business profile's team."""
    return members.revoke_role(db, profile_id, user_id)


@router.put("/{profile_id}/members/demote")
def demote_self(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Step down from admin to editor."""
    return members.demote_self(db, profile_id, user_id)
