"""
Blob storage for audio files and cover art.

The provider interface keeps the song service independent of where bytes
live. The local filesystem provider is what the API serves from MEDIA_URL;
an S3-compatible provider can implement the same interface.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from balltalk.core.config import settings

logger = logging.getLogger(__name__)


class StorageProvider(ABC):
    """Interface every storage backend implements."""

    @abstractmethod
    async def upload_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """
        Store data under key, replacing any existing object.

        Returns:
            Public URL of the stored object
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete the object at key. Returns False if it did not exist."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def url_for(self, key: str) -> str:
        pass


class LocalStorageProvider(StorageProvider):
    """
    Storage provider that uses the local filesystem.
    Objects are written below base_path and served under base_url.
    """

    def __init__(self, base_path: str, base_url: str = "/media"):
        self.base_path = Path(base_path).expanduser().absolute()
        self.base_url = base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get absolute local path for a key, refusing keys that escape base_path."""
        path = (self.base_path / key).resolve()
        if self.base_path.resolve() not in path.parents:
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def upload_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        dest_path = self._get_path(key)

        def _write():
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            dest_path.write_bytes(data)

        await run_in_threadpool(_write)
        logger.info(f"Stored {len(data)} bytes at {key}")
        return self.url_for(key)

    async def delete(self, key: str) -> bool:
        path = self._get_path(key)
        if not path.exists():
            logger.warning(f"Delete requested for missing object {key}")
            return False
        await run_in_threadpool(os.remove, path)
        logger.info(f"Deleted object {key}")
        return True

    async def exists(self, key: str) -> bool:
        return self._get_path(key).exists()


_storage: StorageProvider | None = None

# Dependency
def get_storage() -> StorageProvider:
    """Dependency injection for the configured storage provider"""
    global _storage
    if _storage is None:
        _storage = LocalStorageProvider(settings.STORAGE_ROOT, settings.MEDIA_URL)
    return _storage
