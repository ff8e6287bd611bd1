"""Password hashing and JWT issuing/verification."""

from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from b2b_backend.config import settings
from b2b_backend.errors import AuthenticationError


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def _encode(payload: dict, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    claims = {**payload, "iat": now, "exp": now + lifetime}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_tokens(user_id: str, email: str, role: str | None, remember_me: bool = False) -> dict:
    """Issue an access/refresh token pair."""
    base = {"userId": user_id, "email": email, "role": role}
    refresh_days = settings.refresh_token_days if remember_me else settings.short_refresh_token_days
    return {
        "access_token": _encode({**base, "type": "access"}, timedelta(minutes=settings.access_token_minutes)),
        "refresh_token": _encode({**base, "type": "refresh"}, timedelta(days=refresh_days)),
        "token_type": "bearer",
        "expires_in": settings.access_token_minutes * 60,
    }


def decode_access_token(token: str) -> dict:
    """Verify an access token and return its claims."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid or expired token") from e
    if claims.get("type") != "access" or not claims.get("userId"):
        raise AuthenticationError("Invalid or expired token")
    return claims
