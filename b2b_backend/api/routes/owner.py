"""Owner-only business profile endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.db import get_db
from b2b_backend.services import owner

router = APIRouter()


@router.patch("/{profile_id}/deactivate")
def deactivate(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return owner.deactivate(db, profile_id, user_id)


@router.patch("/{profile_id}/reactivate")
def reactivate(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return owner.reactivate(db, profile_id, user_id)


@router.get("/{profile_id}/members")
def list_members(
    profile_id: str,
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Owner first, then admins, then editors."""
    return owner.list_members(db, profile_id, user_id, page, limit)


@router.put("/{profile_id}/members/{member_id}/promote")
def promote(
    profile_id: str,
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return owner.promote(db, profile_id, user_id, member_id)


@router.put("/{profile_id}/members/{member_id}/demote")
def demote(
    profile_id: str,
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return owner.demote(db, profile_id, user_id, member_id)


@router.delete("/{profile_id}/members/{member_id}")
def remove_member(
    profile_id: str,
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return owner.remove_member(db, profile_id, user_id, member_id)


@router.delete("/{profile_id}")
def delete_profile(profile_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Delete the business profile with its team, jobs and applications."""
    return owner.delete_profile(db, profile_id, user_id)
