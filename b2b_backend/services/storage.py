"""
S3 object storage for uploaded files.

Uses boto3; works against AWS or any S3-compatible endpoint.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from b2b_backend.config import settings
from b2b_backend.errors import StorageError, single_field_error

logger = logging.getLogger(__name__)

# Folders
CERTIFICATES = "certificates"
AVATARS = "avatars"
USER_BANNERS = "userBanners"
RESUMES = "resumes"
BUSINESS_AVATARS = "businessAvatars"
BUSINESS_BANNERS = "businessBanners"
ACHIEVEMENT_CERTIFICATES = "achievementCertificates"

# Allowed extension -> content type, per kind of upload
RESUME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
IMAGE_TYPES = {".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".png": "image/png"}
CERTIFICATE_TYPES = {".pdf": "application/pdf", **IMAGE_TYPES}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class Upload:
    """An uploaded file already read into memory."""

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


def unique_filename(user_id: str, original_name: str) -> str:
    """Build ``{userId}_{YYYY-MM-DD_HH-MM-SS}_{sanitised name}``."""
    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    return f"{user_id}_{timestamp}_{_UNSAFE_CHARS.sub('_', original_name or 'file')}"


def check_upload(filename: str | None, size: int, allowed: dict[str, str], field: str) -> str:
    """Check extension and size of an upload. Returns the content type."""
    ext = PurePosixPath(filename or "").suffix.lower()
    if ext not in allowed:
        kinds = ", ".join(sorted({e.lstrip(".").upper() for e in allowed}))
        raise single_field_error(field, f"Invalid file format. Only {kinds} allowed")
    if size > settings.max_upload_bytes:
        raise single_field_error(field, f"File size must not exceed {settings.max_upload_mb}MB")
    if size == 0:
        raise single_field_error(field, "Uploaded file is empty")
    return allowed[ext]


def filename_from_key(key: str) -> str:
    return key.rsplit("/", 1)[-1]


class ObjectStorage:
    """Thin wrapper over an S3 bucket."""

    def __init__(
        self,
        bucket: str = "",
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        public_base_url: str | None = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url or None
        self.public_base_url = (public_base_url or "").rstrip("/") or None
        self._client = None

    def _get_client(self):
        """Get or create the S3 client."""
        if self._client is None:
            if not self.bucket:
                raise StorageError("S3 bucket not configured")
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                aws_access_key_id=settings.aws_access_key_id or None,
                aws_secret_access_key=settings.aws_secret_access_key or None,
            )
        return self._client

    def base_url(self) -> str:
        if self.public_base_url:
            return self.public_base_url
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com"

    def url_for(self, key: str) -> str:
        return f"{self.base_url()}/{key}"

    def key_from_url(self, url: str | None) -> str | None:
        """Object key for a URL produced by ``url_for``."""
        if not url:
            return None
        prefix = self.base_url() + "/"
        if url.startswith(prefix):
            key = url[len(prefix):]
        else:
            key = urlparse(url).path.lstrip("/")
        return unquote(key) or None

    def upload(self, folder: str, filename: str, content: bytes, content_type: str) -> dict:
        """Store ``content`` under ``folder/filename``."""
        key = f"{folder}/{filename}"
        try:
            self._get_client().put_object(Bucket=self.bucket, Key=key, Body=content, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise StorageError() from e

        logger.info(f"Uploaded {key} ({len(content)} bytes)")
        return {
            "fileId": str(uuid.uuid4()),
            "fileName": filename,
            "fileUrl": self.url_for(key),
            "uploadedAt": datetime.now(UTC).isoformat(),
        }

    def delete(self, folder: str, filename: str):
        key = f"{folder}/{filename}"
        try:
            self._get_client().delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {key} from storage") from e
        logger.info(f"Deleted {key}")


def store_upload(
    storage: ObjectStorage, user_id: str, upload: Upload, folder: str, allowed: dict[str, str], field: str
) -> dict:
    """Check an upload and store it under a unique name."""
    content_type = check_upload(upload.filename, upload.size, allowed, field)
    return storage.upload(folder, unique_filename(user_id, upload.filename), upload.content, content_type)


def discard(storage: ObjectStorage, url: str | None, folder: str):
    """Best-effort delete of a stored object by its URL; failures are logged."""
    key = storage.key_from_url(url)
    if not key:
        return
    try:
        storage.delete(folder, filename_from_key(key))
    except StorageError as e:
        logger.warning(f"Could not delete stale object {key}: {e.message}")


_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """FastAPI dependency returning the shared storage client."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage(
            bucket=settings.s3_bucket_name,
            region=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_base_url,
        )
    return _storage
