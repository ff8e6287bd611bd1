"""
Connections between users.

Requests travel as ``connect_request`` notifications addressed to the
recipient, with payload ``{from, connect_request}``. Accepted connections
are stored as two rows, one per direction.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from b2b_backend.db import Connection, Notification, User
from b2b_backend.db.tables import utcnow
from b2b_backend.errors import (
    AlreadyConnectedError,
    ConnectionNotFoundError,
    ConnectionRequestNotFoundError,
    DuplicateConnectionRequestError,
    NotificationNotFoundError,
    UserNotFoundError,
    single_field_error,
)
from b2b_backend.services import paging
from b2b_backend.services.people import user_summaries

logger = logging.getLogger(__name__)

CONNECT_REQUEST = "connect_request"
CONNECTION_ACCEPTED = "connection_accepted"
REQUEST_STATUSES = ("pending", "accepted", "rejected", "withdrawn", "disconnected")


def _requests(db: Session, sender_id: str, recipient_id: str, statuses=None):
    query = db.query(Notification).filter(
        Notification.user_id == recipient_id,
        Notification.type == CONNECT_REQUEST,
        Notification.payload["from"].as_string() == sender_id,
    )
    if statuses:
        query = query.filter(Notification.payload["connect_request"].as_string().in_(statuses))
    return query


def _set_request_status(notification: Notification, status: str):
    notification.payload = {**(notification.payload or {}), "connect_request": status}


def is_connected(db: Session, user_id: str, other_id: str) -> bool:
    if not user_id or not other_id or user_id == other_id:
        return False
    return (
        db.query(Connection)
        .filter(
            Connection.user_id == user_id,
            Connection.connected_id == other_id,
            Connection.status == "accepted",
        )
        .first()
        is not None
    )


def send_request(db: Session, sender_id: str, recipient_id: str) -> dict:
    if sender_id == recipient_id:
        raise single_field_error("recipient_id", "Cannot send connection request to yourself")
    recipient = db.query(User).filter(User.id == recipient_id, User.deleted_at.is_(None)).first()
    if not recipient:
        raise UserNotFoundError()
    if is_connected(db, sender_id, recipient_id):
        raise AlreadyConnectedError()
    if _requests(db, sender_id, recipient_id, ("pending", "accepted")).first():
        raise DuplicateConnectionRequestError()

    sender = user_summaries(db, [sender_id]).get(sender_id) or {}
    notification = Notification(
        user_id=recipient_id,
        type=CONNECT_REQUEST,
        content=f"{sender.get('name', 'Someone')} sent you a connection request",
        payload={"from": sender_id, "connect_request": "pending"},
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(f"Connection request sent to {recipient_id}", extra={"user_id": sender_id})
    return serialize_notification(notification)


def accept_request(db: Session, user_id: str, sender_id: str) -> dict:
    request = _requests(db, sender_id, user_id, ("pending",)).first()
    if not request:
        raise ConnectionRequestNotFoundError()
    if is_connected(db, user_id, sender_id):
        raise AlreadyConnectedError()

    _set_request_status(request, "accepted")
    request.read = True
    db.add_all(
        [
            Connection(user_id=user_id, connected_id=sender_id, status="accepted"),
            Connection(user_id=sender_id, connected_id=user_id, status="accepted"),
        ]
    )
    accepter = user_summaries(db, [user_id]).get(user_id) or {}
    db.add(
        Notification(
            user_id=sender_id,
            type=CONNECTION_ACCEPTED,
            content=f"{accepter.get('name', 'Someone')} accepted your connection request",
            payload={"from": user_id, "connect_request": "accepted"},
        )
    )
    db.commit()
    logger.info(f"Connection accepted with {sender_id}", extra={"user_id": user_id})
    return {"user_id": user_id, "connected_id": sender_id, "status": "accepted"}


def reject_request(db: Session, user_id: str, sender_id: str) -> dict:
    request = _requests(db, sender_id, user_id, ("pending",)).first()
    if not request:
        raise ConnectionRequestNotFoundError()
    _set_request_status(request, "rejected")
    request.read = True
    db.commit()
    return {"user_id": user_id, "sender_id": sender_id, "connect_request": "rejected"}


def withdraw_request(db: Session, user_id: str, recipient_id: str) -> dict:
    request = _requests(db, user_id, recipient_id, ("pending",)).first()
    if not request:
        raise ConnectionRequestNotFoundError()
    _set_request_status(request, "withdrawn")
    db.commit()
    return {"user_id": user_id, "recipient_id": recipient_id, "connect_request": "withdrawn"}


def remove_connection(db: Session, user_id: str, other_id: str) -> dict:
    rows = (
        db.query(Connection)
        .filter(
            or_(
                (Connection.user_id == user_id) & (Connection.connected_id == other_id),
                (Connection.user_id == other_id) & (Connection.connected_id == user_id),
            )
        )
        .all()
    )
    if not rows:
        raise ConnectionNotFoundError()
    for row in rows:
        db.delete(row)
    for sender, recipient in ((user_id, other_id), (other_id, user_id)):
        for request in _requests(db, sender, recipient, ("accepted",)).all():
            _set_request_status(request, "disconnected")
    db.commit()
    logger.info(f"Connection with {other_id} removed", extra={"user_id": user_id})
    return {"user_id": user_id, "removed_user_id": other_id}


def list_connections(db: Session, user_id: str, page: int, limit: int, search: str | None = None) -> dict:
    page, limit = paging.clamp(page, limit)
    rows = (
        db.query(Connection)
        .filter(Connection.user_id == user_id, Connection.status == "accepted")
        .order_by(Connection.created_at.desc())
        .all()
    )
    people = user_summaries(db, [r.connected_id for r in rows])

    items = []
    term = (search or "").strip().lower()
    for row in rows:
        person = people.get(row.connected_id)
        if not person:
            continue
        if term and term not in (person["name"] or "").lower() and term not in person["email"].lower():
            continue
        items.append(
            {
                "connection_id": row.id,
                "connected_user": {
                    "id": person["id"],
                    "name": person["name"],
                    "email": person["email"],
                    "profile_pic": person["avatar"],
                    "role": person["role"],
                },
                "created_at": row.created_at,
            }
        )

    return {
        "connections": paging.window(items, page, limit),
        "total": len(items),
        "page": page,
        "limit": limit,
        "total_pages": paging.total_pages(len(items), limit),
    }


def connection_status(db: Session, user_id: str, other_id: str) -> dict:
    if user_id == other_id:
        raise single_field_error("user_id", "Cannot check connection status with yourself")
    latest = (
        db.query(Notification)
        .filter(
            Notification.type == CONNECT_REQUEST,
            or_(
                (Notification.user_id == other_id) & (Notification.payload["from"].as_string() == user_id),
                (Notification.user_id == user_id) & (Notification.payload["from"].as_string() == other_id),
            ),
        )
        .order_by(Notification.created_at.desc())
        .first()
    )
    request_status = None
    direction = None
    if latest:
        request_status = (latest.payload or {}).get("connect_request")
        direction = "sent" if latest.user_id == other_id else "received"
    return {
        "user_id": other_id,
        "connected": is_connected(db, user_id, other_id),
        "request_status": request_status,
        "request_direction": direction,
    }


def sent_requests(db: Session, user_id: str, recipient: str | None = None) -> dict:
    query = db.query(Notification).filter(
        Notification.type == CONNECT_REQUEST,
        Notification.payload["from"].as_string() == user_id,
    )
    if recipient:
        query = query.filter(Notification.user_id == recipient)
    rows = query.order_by(Notification.created_at.desc()).all()
    people = user_summaries(db, [r.user_id for r in rows])
    return {
        "requests": [
            {
                "id": r.id,
                "recipient": people.get(r.user_id),
                "connect_request": (r.payload or {}).get("connect_request"),
                "created_at": r.created_at,
            }
            for r in rows
        ],
        "total": len(rows),
    }


def suggested_users(db: Session, user_id: str, page: int, limit: int) -> dict:
    page, limit = paging.clamp(page, limit)

    excluded = {user_id}
    excluded.update(c.connected_id for c in db.query(Connection).filter(Connection.user_id == user_id).all())
    # Requests in either direction that are still open or accepted
    for n in db.query(Notification).filter(
        Notification.type == CONNECT_REQUEST,
        Notification.payload["connect_request"].as_string().in_(("pending", "accepted")),
        or_(Notification.user_id == user_id, Notification.payload["from"].as_string() == user_id),
    ):
        excluded.add(n.user_id if n.user_id != user_id else (n.payload or {}).get("from"))

    candidates = (
        db.query(User)
        .filter(User.active.is_(True), User.deleted_at.is_(None), User.id.notin_(excluded))
        .order_by(User.created_at.desc())
        .all()
    )
    page_users = paging.window(candidates, page, limit)
    people = user_summaries(db, [u.id for u in page_users])
    return {
        "users": [
            {
                "user_id": u.id,
                "name": people[u.id]["name"],
                "profile_pic": people[u.id]["avatar"],
                "role": u.role,
                "created_at": u.created_at,
            }
            for u in page_users
        ],
        "total": len(candidates),
        "page": page,
        "limit": limit,
        "total_pages": paging.total_pages(len(candidates), limit),
    }


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "content": n.content,
        "payload": n.payload or {},
        "connect_request": (n.payload or {}).get("connect_request"),
        "read": n.read,
        "created_at": n.created_at,
    }


def list_notifications(db: Session, user_id: str, status: str | None, page: int, limit: int) -> dict:
    page, limit = paging.clamp(page, limit)
    base = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.type.in_((CONNECT_REQUEST, CONNECTION_ACCEPTED)),
    )
    query = base
    if status and status != "all":
        if status not in REQUEST_STATUSES:
            raise single_field_error("status", f"Status must be one of: all, {', '.join(REQUEST_STATUSES)}")
        query = query.filter(Notification.payload["connect_request"].as_string() == status)

    total = query.count()
    rows = query.order_by(Notification.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    unread = base.filter(Notification.read.is_(False)).count()
    pending = base.filter(
        Notification.type == CONNECT_REQUEST,
        Notification.payload["connect_request"].as_string() == "pending",
    ).count()
    return {
        "notifications": [serialize_notification(n) for n in rows],
        "total": total,
        "unread": unread,
        "pending": pending,
        "page": page,
        "limit": limit,
    }


def mark_notification_read(db: Session, user_id: str, notification_id: str) -> dict:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotificationNotFoundError()
    notification.read = True
    db.commit()
    return {"id": notification.id, "read": True, "read_at": utcnow()}
