"""Storage backends for blob I/O."""

from blogstore.storage.backends.base import StorageBackend
from blogstore.storage.backends.local import LocalStorageBackend
from blogstore.storage.backends.memory import MemoryStorageBackend

__all__ = ["StorageBackend", "LocalStorageBackend", "MemoryStorageBackend"]
