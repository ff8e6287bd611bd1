"""Endpoints about the signed-in user across business profiles."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.db import get_db
from b2b_backend.services import business_profiles

router = APIRouter()


@router.get("/company-pages")
def company_pages(
    role: str = "all",
    include_inactive: bool = False,
    page: int = 1,
    limit: int = 10,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Business profiles the caller owns or belongs to, with the caller's role on each."""
    return business_profiles.list_company_pages(db, user_id, role, include_inactive, page, limit)
