from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from .errors import StoreUnavailableError

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR") or STATIC_DIR / "uploads")
UPLOAD_URL_PREFIX = "/static/uploads"

GCS_PHOTO_BUCKET = os.getenv("GCS_PHOTO_BUCKET")
GCS_PHOTO_BASE_URL = os.getenv("GCS_PHOTO_BASE_URL")
GCS_PHOTO_CACHE_CONTROL = os.getenv("GCS_PHOTO_CACHE_CONTROL", "public, max-age=86400")

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``path`` and return its public URL."""
        ...


def gcs_photos_enabled() -> bool:
    """Return True when a Google Cloud Storage bucket is configured for photos."""
    return bool(GCS_PHOTO_BUCKET)


def gcs_public_url(bucket: str, object_name: str, base_url: str | None = None) -> str:
    base = (base_url or f"https://storage.googleapis.com/{bucket}").rstrip("/")
    return f"{base}/{object_name.lstrip('/')}"


class GCSBlobStore:
    """Uploads to a Google Cloud Storage bucket and returns public object URLs."""

    def __init__(
        self,
        bucket: str,
        *,
        base_url: str | None = None,
        cache_control: str | None = GCS_PHOTO_CACHE_CONTROL,
        client=None,
    ) -> None:
        self.bucket = bucket
        self.base_url = base_url
        self.cache_control = cache_control
        self._client = client

    def _bucket(self):
        if self._client is None:
            from google.cloud import storage

            self._client = storage.Client()
        return self._client.bucket(self.bucket)

    def put(self, path: str, data: bytes, content_type: str) -> str:
        object_name = path.lstrip("/")
        try:
            blob = self._bucket().blob(object_name)
            if self.cache_control:
                blob.cache_control = self.cache_control
            blob.upload_from_string(data, content_type=content_type)
        except Exception as exc:
            logger.exception("Upload of %s to bucket %s failed", object_name, self.bucket)
            raise StoreUnavailableError("Photo storage is temporarily unavailable") from exc
        return gcs_public_url(self.bucket, object_name, self.base_url)


class LocalBlobStore:
    """Writes uploads below a directory served as static files."""

    def __init__(self, root: Path = UPLOAD_DIR, url_prefix: str = UPLOAD_URL_PREFIX) -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, path: str, data: bytes, content_type: str) -> str:
        relative = path.lstrip("/")
        destination = (self.root / relative).resolve()
        if self.root.resolve() not in destination.parents:
            raise ValueError(f"Refusing to write outside the upload directory: {path}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            logger.exception("Writing upload %s failed", destination)
            raise StoreUnavailableError("Photo storage is temporarily unavailable") from exc
        return f"{self.url_prefix}/{relative}"


def ensure_upload_dir() -> None:
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)


def get_blob_store() -> BlobStore:
    """Return the configured blob store for dependency injection."""
    if gcs_photos_enabled():
        return GCSBlobStore(GCS_PHOTO_BUCKET, base_url=GCS_PHOTO_BASE_URL)
    return LocalBlobStore()
