"""Request dependencies: caller identity from the bearer token, uploaded files."""

from fastapi import Header, UploadFile

from b2b_backend.errors import AuthenticationError
from b2b_backend.services.security import decode_access_token
from b2b_backend.services.storage import Upload


def _bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid or expired token")
    return token.strip()


def get_current_user_id(authorization: str | None = Header(default=None)) -> str:
    """User id of the authenticated caller; 401 without a valid access token."""
    if not authorization:
        raise AuthenticationError()
    return decode_access_token(_bearer_token(authorization))["userId"]


def get_optional_user_id(authorization: str | None = Header(default=None)) -> str | None:
    """Like ``get_current_user_id`` but anonymous callers get None."""
    if not authorization:
        return None
    return decode_access_token(_bearer_token(authorization))["userId"]


async def read_upload(file: UploadFile | None) -> Upload | None:
    """Read a multipart file into memory; None when no file was sent."""
    if file is None or not file.filename:
        return None
    return Upload(filename=file.filename, content=await file.read(), content_type=file.content_type)
