"""Blob listing entries.

Examples:
    >>> from blogstore.storage.manifest import build_entry
    >>> build_entry("2026-01-01T00-00-00-000Z-a3f2b1-post.md", b"# Hi").size_bytes
    4
"""

from __future__ import annotations

import hashlib

from pydantic import BaseModel


class BlobEntry(BaseModel):
    """A single object in the content store."""

    key: str
    content_type: str | None = None
    size_bytes: int = 0
    sha256: str | None = None


def build_entry(key: str, data: bytes, content_type: str | None = None) -> BlobEntry:
    """Describe a blob from its bytes."""
    return BlobEntry(
        key=key,
        content_type=content_type,
        size_bytes=len(data),
        sha256=hashlib.sha256(data).hexdigest(),
    )
