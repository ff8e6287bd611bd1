"""Role endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.api.schemas import RoleAssign, RoleResponse, RoleStatusResponse
from b2b_backend.db import get_db
from b2b_backend.services import accounts

router = APIRouter()


@router.get("", response_model=list[RoleResponse])
def list_roles():
    """Available roles."""
    return accounts.list_roles()


@router.get("/status", response_model=RoleStatusResponse)
def role_status(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return accounts.get_role_status(db, user_id)


@router.post("")
def assign_role(
    data: RoleAssign,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Assign or change the caller's role. Returns fresh tokens carrying the new role."""
    return accounts.assign_role(db, user_id, data.role)
