"""Blob store collaborator for document bytes.

The engine only knows locators. ``LocalBlobStore`` keeps files under
``settings.UPLOAD_ROOT`` the same way uploads were always written to disk;
any object store exposing put/get/delete can replace it.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from onboarding.core.config import settings
from onboarding.core.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, locator: str, content: bytes, media_type: str) -> None: ...

    def get(self, locator: str) -> bytes: ...

    def delete(self, locator: str) -> None: ...


class LocalBlobStore:
    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, locator: str) -> Path:
        path = (self.root / locator).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError("Invalid storage locator", locator=locator)
        return path

    def put(self, locator: str, content: bytes, media_type: str) -> None:
        path = self._path(locator)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            raise StorageError("Could not store document", locator=locator) from exc
        logger.debug("Stored %s bytes (%s) at %s", len(content), media_type, locator)

    def get(self, locator: str) -> bytes:
        path = self._path(locator)
        if not path.exists():
            raise NotFoundError("Stored file no longer exists", locator=locator)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError("Could not read document", locator=locator) from exc

    def delete(self, locator: str) -> None:
        try:
            self._path(locator).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Could not delete document", locator=locator) from exc


@lru_cache
def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.UPLOAD_ROOT)
