# File: busbuzz/services/attachments.py
import logging
import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from busbuzz.core.errors import NotFound, PayloadTooLarge, StoreUnavailable, ValidationError
from busbuzz.models.attachment import Attachment
from busbuzz.services.storage import BlobStore, make_object_key, new_attachment_id

logger = logging.getLogger(__name__)

MAX_BYTES = 10 * 1024 * 1024
DEFAULT_NAME = "attachment"
DEFAULT_MIME = "application/octet-stream"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_MIME_SHAPE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]*/[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]*$")
_ID_SHAPE = re.compile(r"^[0-9a-f]{32}$")


def sanitize_filename(name: Optional[str]) -> str:
    cleaned = _UNSAFE_CHARS.sub("", name or "")
    if not cleaned.strip("."):
        return DEFAULT_NAME
    return cleaned[:255]


def sanitize_mime(mime: Optional[str]) -> str:
    mime = (mime or "").split(";", 1)[0].strip().lower()
    return mime if _MIME_SHAPE.match(mime) else DEFAULT_MIME


def attachment_url(attachment_id: str) -> str:
    return f"/attachments/{attachment_id}"


@dataclass
class StoredAttachment:
    id: str
    url: str
    sanitized_name: str
    mime_type: str
    size: int


@dataclass
class AttachmentContent:
    data: bytes
    mime_type: str
    sanitized_name: str


class AttachmentService:
    def __init__(self, db: Session, blobs: BlobStore, max_bytes: int = MAX_BYTES):
        self.db = db
        self.blobs = blobs
        self.max_bytes = max_bytes

    def register_attachment(self, data: bytes, declared_name: Optional[str], mime_type: Optional[str],
                            uploaded_by_id: Optional[int] = None) -> StoredAttachment:
        if not data:
            raise ValidationError("No file uploaded.", fields=["file"])
        if len(data) > self.max_bytes:
            raise PayloadTooLarge(f"File exceeds {self.max_bytes // (1024 * 1024)} MiB")

        att_id = new_attachment_id()
        name = sanitize_filename(declared_name)
        mime = sanitize_mime(mime_type)
        key = make_object_key(att_id, name)

        self.blobs.put(key, data, mime)
        row = Attachment(
            id=att_id,
            name=name,
            content_type=mime,
            size=len(data),
            storage_key=key,
            uploaded_by_id=uploaded_by_id,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError:
            # the blob is left orphaned
            self.db.rollback()
            logger.error("Failed to record attachment %s", att_id, exc_info=True)
            raise StoreUnavailable()
        logger.info("Stored attachment %s (%s bytes)", att_id, len(data))
        return StoredAttachment(id=att_id, url=attachment_url(att_id), sanitized_name=name,
                                mime_type=mime, size=len(data))

    def fetch_attachment(self, attachment_id: str) -> AttachmentContent:
        if not attachment_id or not _ID_SHAPE.match(attachment_id):
            raise NotFound("Attachment not found")
        row = self.db.get(Attachment, attachment_id)
        if not row:
            raise NotFound("Attachment not found")
        data = self.blobs.get(row.storage_key)
        return AttachmentContent(data=data, mime_type=row.content_type, sanitized_name=row.name)
