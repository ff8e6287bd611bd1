"""Display details (name, avatar) for users, read from their personal profiles."""

from sqlalchemy.orm import Session

from b2b_backend.db import User, UserProfile


def profile_name(profile_data: dict | None) -> str | None:
    info = (profile_data or {}).get("personal_information") or {}
    name = f"{info.get('first_name') or ''} {info.get('last_name') or ''}".strip()
    return name or None


def profile_avatar(profile_data: dict | None) -> str | None:
    avatar = (profile_data or {}).get("avatar")
    if isinstance(avatar, dict):
        return avatar.get("fileUrl")
    return None


def user_summaries(db: Session, user_ids) -> dict[str, dict]:
    """Map user id -> ``{id, name, email, avatar, role}`` for the given ids."""
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return {}

    users = db.query(User).filter(User.id.in_(ids)).all()
    profiles = {p.user_id: p for p in db.query(UserProfile).filter(UserProfile.user_id.in_(ids)).all()}

    summaries = {}
    for user in users:
        profile = profiles.get(user.id)
        data = profile.profile_data if profile else None
        summaries[user.id] = {
            "id": user.id,
            "name": profile_name(data) or user.email.split("@", 1)[0],
            "email": user.email,
            "avatar": profile_avatar(data),
            "role": user.role,
        }
    return summaries
