"""Storage service for post images.

Two backends share the StorageBackend interface: LocalStorage writes to disk
(served by the app under /uploads) and S3Storage uploads to an S3-compatible
bucket. STORAGE_BACKEND picks one. Objects are grouped per owner:
posts/{user_id}/{uuid}{ext}
"""
import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from appify.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the storage backend cannot store or remove an object."""


class StorageBackend(Protocol):
    def save(self, user_id: str, folder: str, data: bytes, ext: str, content_type: str) -> str:
        """Save file and return public URL."""
        ...

    def delete(self, url: str) -> bool:
        """Delete file by URL. Returns True if deleted."""
        ...


def _object_key(user_id: str, folder: str, ext: str) -> str:
    return f"{folder}/{user_id}/{uuid.uuid4().hex}{ext}"


class LocalStorage:
    """Store files on local disk. Path: {UPLOAD_DIR}/{folder}/{user_id}/{uuid}.{ext}"""

    def __init__(self, base_dir: str | None = None, base_url: str | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR).resolve()
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")

    def save(self, user_id: str, folder: str, data: bytes, ext: str, content_type: str) -> str:
        key = _object_key(user_id, folder, ext)
        filepath = self.base_dir / key
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(data)
        except OSError as exc:
            logger.exception("Failed to write %s", filepath)
            raise StorageError("Unable to store media") from exc
        logger.info("Stored %s (%d bytes)", key, len(data))
        return f"{self.base_url}/uploads/{key}"

    def delete(self, url: str) -> bool:
        if "/uploads/" not in url:
            return False
        rel = url.split("/uploads/", 1)[1]
        filepath = (self.base_dir / rel).resolve()
        if self.base_dir not in filepath.parents or not filepath.exists():
            return False
        try:
            filepath.unlink()
        except OSError:
            logger.warning("Could not remove %s", filepath, exc_info=True)
            return False
        return True


class S3Storage:
    """Store files in an S3-compatible bucket (AWS S3, MinIO, DigitalOcean Spaces)."""

    def __init__(self, client: BaseClient | None = None, bucket: str | None = None, public_base_url: str | None = None):
        self.client = client or get_s3_client()
        self.bucket = bucket or settings.S3_BUCKET_MEDIA
        default_base = f"{(settings.S3_ENDPOINT_URL or '').rstrip('/')}/{self.bucket}"
        self.public_base_url = (public_base_url or settings.S3_PUBLIC_BASE_URL or default_base).rstrip("/")

    def save(self, user_id: str, folder: str, data: bytes, ext: str, content_type: str) -> str:
        key = _object_key(user_id, folder, ext)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Failed to upload %s to bucket %s", key, self.bucket)
            raise StorageError("Unable to store media") from exc
        logger.info("Uploaded %s to bucket %s (%d bytes)", key, self.bucket, len(data))
        return f"{self.public_base_url}/{key}"

    def delete(self, url: str) -> bool:
        prefix = f"{self.public_base_url}/"
        if not url.startswith(prefix):
            return False
        key = url[len(prefix):]
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("Failed to delete %s from bucket %s", key, self.bucket)
            raise StorageError("Unable to delete media") from exc
        return True


@lru_cache(maxsize=1)
def get_s3_client() -> BaseClient:
    session = Session()
    return session.client(
        "s3",
        region_name=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
    )


# Singleton, chosen by STORAGE_BACKEND on first use
_storage: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "s3":
            _storage = S3Storage()
        else:
            _storage = LocalStorage()
    return _storage


def set_storage(storage: StorageBackend | None) -> None:
    """Replace the active backend (None resets to the configured one)."""
    global _storage
    _storage = storage
