"""Connection request and notification endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from b2b_backend.api.deps import get_current_user_id
from b2b_backend.api.schemas import ConnectRequest, NotificationRead, RemoveConnection, SenderRequest
from b2b_backend.db import get_db
from b2b_backend.services import connections

router = APIRouter()


@router.post("/request", status_code=201)
def send_request(data: ConnectRequest, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connections.send_request(db, user_id, data.recipient_id)


@router.post("/accept")
def accept_request(data: SenderRequest, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    """Accept a pending request; both users become connected."""
    return connections.accept_request(db, user_id, data.sender_id)


@router.post("/reject")
def reject_request(data: SenderRequest, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connections.reject_request(db, user_id, data.sender_id)


@router.delete("/withdraw")
def withdraw_request(data: ConnectRequest, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connections.withdraw_request(db, user_id, data.recipient_id)


@router.delete("/remove")
def remove_connection(
    data: RemoveConnection, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)
):
    return connections.remove_connection(db, user_id, data.user_id)


@router.get("/list")
def list_connections(
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return connections.list_connections(db, user_id, page, limit, search)


@router.get("/status/{other_id}")
def connection_status(other_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return connections.connection_status(db, user_id, other_id)


@router.get("/sent")
def sent_requests(
    recipient: str | None = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return connections.sent_requests(db, user_id, recipient)


@router.get("/suggested")
def suggested_users(
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Active users with no connection or open request either way."""
    return connections.suggested_users(db, user_id, page, limit)


@router.get("/notifications")
def list_notifications(
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return connections.list_notifications(db, user_id, status, page, limit)


@router.post("/notifications/read")
def mark_notification_read(
    data: NotificationRead, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)
):
    return connections.mark_notification_read(db, user_id, data.notification_id)
