"""Blob storage package for Blogstore.

Holds post bodies and images by key, independent of the metadata store.

Examples:
    >>> from blogstore.storage import StorageService, StorageConfig
    >>> service = StorageService.from_config(StorageConfig())
    >>> await service.put(generate_content_key("post.md"), b"# Hi")
"""

from blogstore.storage.config import StorageBackendType, StorageConfig
from blogstore.storage.manifest import BlobEntry
from blogstore.storage.naming import (
    generate_content_key,
    generate_image_key,
    generate_post_id,
    safe_filename,
    validate_key,
)
from blogstore.storage.service import StorageService

__all__ = [
    "BlobEntry",
    "StorageBackendType",
    "StorageConfig",
    "StorageService",
    "generate_content_key",
    "generate_image_key",
    "generate_post_id",
    "safe_filename",
    "validate_key",
]
