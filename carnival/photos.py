"""Photo uploads: validate the image, store it as a blob, record a photo submission."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from uuid import uuid4

from PIL import Image
from pillow_heif import register_heif_opener
from sqlmodel import Session

from .database import Submission, SubmissionKind
from .errors import InvalidPayloadError
from .events import EventDirectory
from .storage import BlobStore
from .submissions import SubmissionPayload, SubmissionStore, clean_author, clean_title

register_heif_opener()

logger = logging.getLogger(__name__)

MAX_PHOTO_BYTES = int(os.getenv("MAX_PHOTO_BYTES", str(5 * 1024 * 1024)))
ALLOWED_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic", ".heif"}
HEIC_SUFFIXES = {".heic", ".heif"}


@dataclass
class PreparedImage:
    data: bytes
    original_name: str
    suffix: str
    content_type: str


def prepare_image(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    *,
    max_bytes: int = MAX_PHOTO_BYTES,
) -> PreparedImage:
    """Check an uploaded file and convert HEIC images to JPEG."""
    original_name = filename or "upload.png"
    content_type = (content_type or "").lower()
    suffix = Path(original_name).suffix.lower() or ".png"

    if not content_type.startswith("image/"):
        raise InvalidPayloadError(f"{original_name}: only image uploads are allowed.")
    if suffix not in ALLOWED_SUFFIXES:
        raise InvalidPayloadError(f"{original_name}: use PNG, JPG, GIF, HEIC, or WebP images.")
    if not data:
        raise InvalidPayloadError(f"{original_name}: the file is empty.")
    if len(data) > max_bytes:
        raise InvalidPayloadError(f"{original_name}: images must be {max_bytes // (1024 * 1024)} MB or smaller.")

    if suffix in HEIC_SUFFIXES:
        try:
            with Image.open(BytesIO(data)) as img:
                buffer = BytesIO()
                img.convert("RGB").save(buffer, format="JPEG")
        except (OSError, ValueError) as exc:
            raise InvalidPayloadError(f"{original_name}: could not convert HEIC image.") from exc
        return PreparedImage(
            data=buffer.getvalue(),
            original_name=f"{Path(original_name).stem}.jpg",
            suffix=".jpg",
            content_type="image/jpeg",
        )

    if suffix in {".jpg", ".jpeg"}:
        content_type = "image/jpeg"
    return PreparedImage(data=data, original_name=original_name, suffix=suffix, content_type=content_type)


class PhotoUploader:
    def __init__(self, session: Session, blob_store: BlobStore) -> None:
        self.blob_store = blob_store
        self.events = EventDirectory(session)
        self.photos = SubmissionStore(session, SubmissionKind.PHOTO)

    def upload(
        self,
        event_id: int,
        author_id: str,
        caption: str | None,
        *,
        filename: str | None,
        content_type: str | None,
        data: bytes,
    ) -> Submission:
        clean_author(author_id)
        clean_title(SubmissionKind.PHOTO, caption)
        image = prepare_image(filename, content_type, data)
        self.events.get_event(event_id)

        object_name = f"{event_id}/{uuid4().hex}{image.suffix}"
        url = self.blob_store.put(object_name, image.data, image.content_type)
        logger.info("Stored photo %s for event %s at %s", image.original_name, event_id, url)
        return self.photos.submit(event_id, author_id, SubmissionPayload(url=url, title=caption))
