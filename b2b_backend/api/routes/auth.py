"""Account endpoints: registration, login and account lifecycle."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.api.limiter import limiter
from b2b_backend.api.schemas import AuthResponse, LoginRequest, RegisterRequest, TutorialStatusUpdate
from b2b_backend.db import get_db
from b2b_backend.services import accounts

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("10/minute")
def register(request: Request, data: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and return a token pair."""
    return accounts.register(db, data.email, data.password, data.remember_me)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    """Log in; restores soft-deleted accounts within the grace period."""
    return accounts.login(db, data.email, data.password, data.remember_me)


@router.patch("/tutorial-status")
def update_tutorial_status(
    data: TutorialStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return accounts.update_tutorial_status(db, user_id, data.tutorial_status)


@router.post("/deactivate-account")
def deactivate_account(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return accounts.deactivate(db, user_id)


@router.delete("/delete-account")
def delete_account(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Soft delete the caller's account."""
    return accounts.delete(db, user_id)
