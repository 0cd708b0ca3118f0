"""Storage configuration model."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class StorageBackendType(str, Enum):
    """Supported content store backends."""

    LOCAL = "local"
    MEMORY = "memory"


class StorageConfig(BaseModel):
    """Configuration for the content store.

    Attributes:
        backend: Which backend holds blobs.
        root: Root directory for the local backend.
    """

    backend: StorageBackendType = Field(
        default=StorageBackendType.LOCAL, description="Content store backend"
    )
    root: str = Field(default="./output/blobs", description="Blob storage root directory")
