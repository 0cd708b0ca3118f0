"""Local filesystem storage backend using pathlib."""

from __future__ import annotations

from pathlib import Path

from blogstore.errors import InvalidKeyError
from blogstore.storage.backends.base import StorageBackend
from blogstore.storage.manifest import BlobEntry, build_entry

# In-progress writes: ".{name}.tmp" beside the final file
TMP_PREFIX = "."
TMP_SUFFIX = ".tmp"


def _is_partial_write(name: str) -> bool:
    return name.startswith(TMP_PREFIX) and name.endswith(TMP_SUFFIX)


class LocalStorageBackend(StorageBackend):
    """Pathlib-based local filesystem storage backend.

    Content types are not persisted; listed entries report None.
    """

    def __init__(self, root: str) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        root = self.root.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise InvalidKeyError(f"Storage key escapes the storage root: {key!r}")
        return path

    async def write(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Write binary data to a local file."""
        p = self._path(key)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_name(f"{TMP_PREFIX}{p.name}{TMP_SUFFIX}")
        tmp.write_bytes(data)
        tmp.replace(p)

    async def read(self, key: str) -> bytes | None:
        """Read a local file, or None if missing."""
        p = self._path(key)
        if not p.is_file():
            return None
        return p.read_bytes()

    async def remove(self, key: str) -> None:
        """Delete a local file if present."""
        self._path(key).unlink(missing_ok=True)

    async def entries(self) -> list[BlobEntry]:
        """Walk the root directory and describe each file."""
        if not self.root.exists():
            return []
        root = self.root.resolve()
        result = []
        for p in sorted(root.rglob("*")):
            if not p.is_file() or _is_partial_write(p.name):
                continue
            key = p.relative_to(root).as_posix()
            result.append(build_entry(key, p.read_bytes()))
        return result
