"""Abstract base class for storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from blogstore.storage.manifest import BlobEntry


class StorageBackend(ABC):
    """Abstract storage backend for blob I/O.

    Keys are relative object names that have already been validated.
    Implementations must fully replace an object on write and treat a
    delete of a missing key as a no-op.
    """

    @abstractmethod
    async def write(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Create or replace an object.

        Args:
            key: Object key.
            data: Binary data to write.
            content_type: Declared media type, if known.
        """

    @abstractmethod
    async def read(self, key: str) -> bytes | None:
        """Read an object.

        Args:
            key: Object key.

        Returns:
            The object's bytes, or None if it does not exist.
        """

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete an object if it exists.

        Args:
            key: Object key.
        """

    @abstractmethod
    async def entries(self) -> list[BlobEntry]:
        """Describe every stored object.

        Returns:
            One entry per object, sorted by key.
        """
