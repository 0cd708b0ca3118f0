"""Post API endpoints.

Endpoints:
    POST /upload, /create-blog - Create a post (multipart)
    POST /upload-img - Store a standalone image (multipart)
    GET /list - List posts, newest first
    GET /post/{id_or_slug} - Get a post with its body
    DELETE /post/{post_id} - Delete a post and its blobs

Examples:
    >>> # Create a post
    >>> curl -F file=@post.md -F title="My First Post" -F category=general \\
    ...      -F token=$UPLOAD_TOKEN http://localhost:8000/upload
    >>>
    >>> # Response
    >>> {"message": "Uploaded", "postId": "...", "contentKey": "...", "slug": "my-first-post"}

Tests:
    - tests/integration/test_api_posts.py
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from blogstore.api.dependencies import get_publisher, read_multipart
from blogstore.core.publisher import PublishService
from blogstore.schemas import (
    DeleteResponse,
    ErrorResponse,
    ImageUploadResponse,
    PostDetail,
    PostListResponse,
    PostResponse,
    PostSummary,
    UploadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["posts"])

UPLOAD_ERRORS = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    403: {"model": ErrorResponse, "description": "Invalid token"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


@router.post("/upload", response_model=UploadResponse, responses=UPLOAD_ERRORS)
@router.post("/create-blog", response_model=UploadResponse, responses=UPLOAD_ERRORS)
async def create_post(
    request: Request,
    publisher: PublishService = Depends(get_publisher),
) -> UploadResponse:
    """Create a post from a multipart upload.

    Fields:
        file: Markdown body (or a 'markdown' text field instead)
        header: Optional header image
        title, category: Required
        description, tags: Optional
        token: Shared upload secret

    Returns:
        UploadResponse with the assigned id, keys and slug
    """
    fields, files = await read_multipart(request, publisher.context.max_upload_bytes)
    logger.info(f"Create request: {fields.get('title')!r}")

    result = await publisher.create_post(fields, files)

    return UploadResponse(
        post_id=result.post_id,
        content_key=result.content_key,
        header_key=result.header_key,
        slug=result.slug,
    )


@router.post("/upload-img", response_model=ImageUploadResponse, responses=UPLOAD_ERRORS)
async def upload_image(
    request: Request,
    publisher: PublishService = Depends(get_publisher),
) -> ImageUploadResponse:
    """Store a standalone image and return its key."""
    fields, files = await read_multipart(request, publisher.context.max_upload_bytes)
    entry = await publisher.upload_image(fields, files)
    return ImageUploadResponse(key=entry.key)


@router.get("/list", response_model=PostListResponse)
async def list_posts(
    publisher: PublishService = Depends(get_publisher),
) -> PostListResponse:
    """List post metadata, newest first. Bodies are not included."""
    posts = await publisher.list_posts()
    return PostListResponse(posts=[PostSummary.model_validate(p) for p in posts])


@router.get(
    "/post/{id_or_slug}",
    response_model=PostResponse,
    responses={404: {"model": ErrorResponse, "description": "Post or content not found"}},
)
async def get_post(
    id_or_slug: str,
    publisher: PublishService = Depends(get_publisher),
) -> PostResponse:
    """Get a post by id or slug, with its markdown body."""
    view = await publisher.get_post(id_or_slug)
    summary = PostSummary.model_validate(view.post)
    return PostResponse(post=PostDetail(**summary.model_dump(), markdown=view.markdown))


@router.delete(
    "/post/{post_id}",
    response_model=DeleteResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid stored key"},
        404: {"model": ErrorResponse, "description": "Post not found"},
    },
)
async def delete_post(
    post_id: str,
    publisher: PublishService = Depends(get_publisher),
) -> DeleteResponse:
    """Delete a post row, then its blobs.

    A blob that cannot be deleted is reported in orphanedKeys; the post
    itself is gone either way.
    """
    result = await publisher.delete_post(post_id)

    if result.content_removed:
        message = f"Post {post_id} deleted successfully"
    else:
        message = f"Post {post_id} deleted; content cleanup pending"

    return DeleteResponse(
        message=message,
        id=post_id,
        content_removed=result.content_removed,
        orphaned_keys=result.orphaned_keys,
    )
