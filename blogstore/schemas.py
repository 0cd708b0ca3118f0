"""Response models for the HTTP API.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base model serializing to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FieldErrorModel(APIModel):
    """A single field-level validation failure."""

    field: str
    message: str


class ErrorResponse(APIModel):
    """Error response model."""

    message: str
    details: list[FieldErrorModel] | None = None


class UploadResponse(APIModel):
    """Response after creating a post."""

    message: str = "Uploaded"
    post_id: str
    content_key: str
    header_key: str | None = None
    slug: str


class ImageUploadResponse(APIModel):
    """Response after storing a standalone image."""

    message: str = "Uploaded"
    key: str


class PostSummary(APIModel):
    """Post metadata without its body."""

    id: str
    title: str
    description: str = ""
    tags: str = ""
    category: str
    content_key: str
    header_key: str | None = None
    slug: str
    created_at: datetime | None = None


class PostDetail(PostSummary):
    """Post metadata merged with its decoded body."""

    markdown: str


class PostListResponse(APIModel):
    """Response containing all posts, newest first."""

    posts: list[PostSummary] = Field(default_factory=list)


class PostResponse(APIModel):
    """Response containing one post."""

    post: PostDetail


class DeleteResponse(APIModel):
    """Response after deleting a post."""

    message: str
    id: str
    content_removed: bool = True
    orphaned_keys: list[str] = Field(default_factory=list)
