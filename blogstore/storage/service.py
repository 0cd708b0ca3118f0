"""Storage service: the content store adapter.

Validates keys, delegates I/O to a backend, and turns backend failures
into StoreError.

Examples:
    >>> from blogstore.storage.service import StorageService
    >>> service = StorageService.from_config(config)
    >>> entry = await service.put("2026-02-09T08-15-02-123Z-a3f2b1-post.md", b"# Hi", "text/markdown")
    >>> await service.get(entry.key)
    b'# Hi'
"""

from __future__ import annotations

import logging

from blogstore.errors import InvalidKeyError, StoreError
from blogstore.storage.backends.base import StorageBackend
from blogstore.storage.backends.local import LocalStorageBackend
from blogstore.storage.backends.memory import MemoryStorageBackend
from blogstore.storage.config import StorageBackendType, StorageConfig
from blogstore.storage.manifest import BlobEntry, build_entry
from blogstore.storage.naming import validate_key

logger = logging.getLogger(__name__)


class StorageService:
    """Key-addressed blob operations over a storage backend.

    Attributes:
        config: Storage configuration.
        backend: Storage backend for I/O.
    """

    def __init__(self, config: StorageConfig, backend: StorageBackend | None = None) -> None:
        self.config = config
        self.backend = backend or LocalStorageBackend(config.root)

    @classmethod
    def from_config(cls, config: StorageConfig) -> "StorageService":
        """Create a StorageService with the backend named in config."""
        if config.backend == StorageBackendType.MEMORY:
            return cls(config=config, backend=MemoryStorageBackend())
        return cls(config=config, backend=LocalStorageBackend(config.root))

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> BlobEntry:
        """Create or fully replace a blob.

        Args:
            key: Blob key.
            data: Blob content.
            content_type: Declared media type.

        Returns:
            BlobEntry describing what was written.

        Raises:
            InvalidKeyError: If the key cannot be addressed.
            StoreError: If the backend write fails.
        """
        validate_key(key)
        try:
            await self.backend.write(key, data, content_type)
        except InvalidKeyError:
            raise
        except Exception as e:
            logger.error(f"Blob write failed for {key}: {e}")
            raise StoreError(f"Blob write failed for {key}") from e

        logger.info(f"Blob written: {key} ({len(data)} bytes)")
        return build_entry(key, data, content_type)

    async def get(self, key: str) -> bytes | None:
        """Fetch a blob, or None if it does not exist."""
        validate_key(key)
        try:
            return await self.backend.read(key)
        except InvalidKeyError:
            raise
        except Exception as e:
            logger.error(f"Blob read failed for {key}: {e}")
            raise StoreError(f"Blob read failed for {key}") from e

    async def delete(self, key: str) -> None:
        """Delete a blob. Deleting a missing blob succeeds."""
        validate_key(key)
        try:
            await self.backend.remove(key)
        except InvalidKeyError:
            raise
        except Exception as e:
            logger.error(f"Blob delete failed for {key}: {e}")
            raise StoreError(f"Blob delete failed for {key}") from e

        logger.info(f"Blob deleted: {key}")

    async def list(self) -> list[BlobEntry]:
        """Materialize the current set of blobs."""
        try:
            return await self.backend.entries()
        except Exception as e:
            logger.error(f"Blob listing failed: {e}")
            raise StoreError("Blob listing failed") from e
