# File: busbuzz/services/storage.py
"""Blob stores for attachment bytes. Metadata lives in the database; only
bytes pass through here, keyed by an opaque storage key."""
import logging
import uuid
from pathlib import Path

import requests

from busbuzz.core.config import Settings
from busbuzz.core.errors import NotFound, StoreUnavailable

logger = logging.getLogger(__name__)


class BlobStore:
    def put(self, key: str, data: bytes, content_type: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> bytes:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    def __init__(self, root: str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / key

    def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise NotFound("Attachment not found")
        return path.read_bytes()


class SupabaseBlobStore(BlobStore):
    """Supabase Storage via REST with the service-role key."""

    def __init__(self, url: str, service_role: str, bucket: str):
        self.url = url.rstrip("/")
        self.service_role = service_role
        self.bucket = bucket

    def _headers(self, **extra) -> dict:
        return {"Authorization": f"Bearer {self.service_role}", **extra}

    def put(self, key: str, data: bytes, content_type: str) -> None:
        url = f"{self.url}/storage/v1/object/{self.bucket}/{key}"
        try:
            r = requests.post(url, headers=self._headers(**{
                "Content-Type": content_type,
                "x-upsert": "true",
            }), data=data, timeout=30)
            r.raise_for_status()
        except requests.RequestException:
            logger.error("Blob upload failed for %s", key, exc_info=True)
            raise StoreUnavailable()

    def get(self, key: str) -> bytes:
        url = f"{self.url}/storage/v1/object/{self.bucket}/{key}"
        try:
            r = requests.get(url, headers=self._headers(), timeout=30)
        except requests.RequestException:
            logger.error("Blob download failed for %s", key, exc_info=True)
            raise StoreUnavailable()
        if r.status_code in (400, 404):
            raise NotFound("Attachment not found")
        try:
            r.raise_for_status()
        except requests.HTTPError:
            logger.error("Blob download failed for %s: HTTP %s", key, r.status_code)
            raise StoreUnavailable()
        return r.content


def make_blob_store(cfg: Settings) -> BlobStore:
    if cfg.supabase_url and cfg.supabase_service_role:
        return SupabaseBlobStore(cfg.supabase_url, cfg.supabase_service_role, cfg.supabase_bucket)
    return LocalBlobStore(cfg.upload_dir)


def make_object_key(attachment_id: str, filename: str) -> str:
    ext = (filename.rsplit(".", 1)[-1].lower() if "." in filename else "") or "bin"
    return f"{attachment_id[:2]}/{attachment_id}.{ext}"


def new_attachment_id() -> str:
    return uuid.uuid4().hex
