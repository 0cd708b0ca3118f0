"""SQLAlchemy models for Blogstore.

This module defines the metadata row for a published post. Post bodies
and images live in the content store and are referenced by key.

Examples:
    >>> from blogstore.models import BlogPost
    >>> post = BlogPost(
    ...     id="V1StGXR8_Z5jdHi6B-myT",
    ...     title="My First Post",
    ...     category="general",
    ...     content_key="2026-02-09T08-15-02-123Z-a3f2b1-post.md",
    ...     slug="my-first-post",
    ... )

Tests:
    - tests/unit/test_models.py
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


class BlogPost(Base):
    """Metadata for a published post.

    Attributes:
        id: Opaque generated identifier
        title: Post title
        description: Short summary ("" when not given)
        category: Category name
        tags: Free-text tags ("" when not given)
        content_key: Content store key of the post body
        header_key: Content store key of the header image (optional)
        slug: Unique URL slug derived from the title
        created_at: Creation timestamp
    """

    __tablename__ = "blog_posts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    tags: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    # Content store references
    content_key: Mapped[str] = mapped_column(Text, nullable=False)
    header_key: Mapped[str | None] = mapped_column(Text, default=None)

    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<BlogPost(id={self.id}, slug={self.slug})>"

    @property
    def blob_keys(self) -> list[str]:
        """Every content store key this row references."""
        return [key for key in (self.content_key, self.header_key) if key]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "tags": self.tags,
            "category": self.category,
            "content_key": self.content_key,
            "header_key": self.header_key,
            "slug": self.slug,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
