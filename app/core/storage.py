from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Protocol
from uuid import uuid4

from app.core.config import get_settings

logger = logging.getLogger(__name__)

PRODUCT_IMAGE_NAMESPACE = "products"


class BlobStoreError(Exception):
    """Raised when a blob key cannot be stored, resolved or removed."""


class BlobStore(Protocol):
    def store(self, content: bytes, *, filename: str, namespace: str) -> str:
        ...

    def delete(self, key: str) -> None:
        ...

    def exists(self, key: str) -> bool:
        ...

    def url(self, key: str | None) -> str | None:
        ...


class LocalBlobStore:
    """Blob store backed by a directory on the local filesystem.

    Keys are POSIX-style paths relative to ``root`` (``products/<hex>.png``)
    and are served back under ``url_prefix``.
    """

    def __init__(self, root: Path | str, url_prefix: str = "/storage"):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def path(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or any(part in {"..", "/"} for part in parts):
            raise BlobStoreError(f"Invalid blob key: {key!r}")
        return self.root.joinpath(*parts)

    def store(self, content: bytes, *, filename: str, namespace: str) -> str:
        ext = Path(filename).suffix.lower()
        key = f"{namespace.strip('/')}/{uuid4().hex}{ext}"
        destination = self.path(key)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with destination.open("wb") as buffer:
                buffer.write(content)
        except OSError as exc:
            raise BlobStoreError(f"Failed to store blob {key}") from exc
        logger.info("Stored blob %s (%d bytes)", key, len(content))
        return key

    def delete(self, key: str) -> None:
        destination = self.path(key)
        try:
            destination.unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"Failed to delete blob {key}") from exc
        logger.info("Deleted blob %s", key)

    def exists(self, key: str) -> bool:
        try:
            return self.path(key).is_file()
        except BlobStoreError:
            return False

    def url(self, key: str | None) -> str | None:
        if not key:
            return None
        return f"{self.url_prefix}/{key.lstrip('/')}"


@lru_cache
def get_blob_store() -> LocalBlobStore:
    settings = get_settings()
    return LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_URL_PREFIX)
