"""In-memory storage backend for development and tests."""

from __future__ import annotations

from blogstore.storage.backends.base import StorageBackend
from blogstore.storage.manifest import BlobEntry, build_entry


class MemoryStorageBackend(StorageBackend):
    """Dict-backed storage backend. Contents are lost on restart."""

    def __init__(self) -> None:
        self._objects: dict[str, tuple[bytes, str | None]] = {}

    async def write(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._objects[key] = (bytes(data), content_type)

    async def read(self, key: str) -> bytes | None:
        obj = self._objects.get(key)
        return obj[0] if obj is not None else None

    async def remove(self, key: str) -> None:
        self._objects.pop(key, None)

    async def entries(self) -> list[BlobEntry]:
        return [
            build_entry(key, data, content_type)
            for key, (data, content_type) in sorted(self._objects.items())
        ]
