"""Object storage for uploaded files (contract signatures).

The shipped backend writes under a local directory and serves files from a
configurable public base URL. Remote storage plugs in behind ``ObjectStorage``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from renoquote.config import StorageConfig, get_config

logger = logging.getLogger(__name__)


class ObjectStorageError(Exception):
    """Upload could not be completed."""


class ObjectStorage(ABC):
    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` (overwriting) and return its public URL."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the object at ``path``; a missing object is not an error."""


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed storage rooted at ``StorageConfig.root``."""

    def __init__(self, config: StorageConfig | None = None):
        config = config or get_config().storage
        self.root = Path(config.root)
        self.public_base_url = config.public_base_url.rstrip("/")

    def full_path(self, path: str) -> Path:
        root = self.root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise ObjectStorageError(f"Path escapes storage root: {path}")
        return target

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{path.lstrip('/')}"

    def _write(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self.full_path(path)
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise ObjectStorageError(f"Failed to write {path}: {exc}") from exc
        logger.info("Object stored: %s (%s, %d bytes)", path, content_type, len(data))
        return self.public_url(path)

    async def delete(self, path: str) -> None:
        target = self.full_path(path)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as exc:
            raise ObjectStorageError(f"Failed to delete {path}: {exc}") from exc
        logger.info("Object deleted: %s", path)


_storage: ObjectStorage | None = None


def get_object_storage() -> ObjectStorage:
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage()
    return _storage
