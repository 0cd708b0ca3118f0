"""Publishing pipeline: create, upload image, list, get and delete posts.

The content store and the metadata store share no transaction, so every
operation orders its writes so that a metadata row never points at a
missing blob:

    create: validate -> token -> keys/slug -> blob(s) -> row
    delete: row -> blob(s)

A crash between steps can leave an orphan blob, which find_orphans()
reports and prune_orphans() removes.

Examples:
    >>> service = PublishService(PublishContext(
    ...     upload_token="s3cret", storage=storage, posts=PostRepository(factory),
    ... ))
    >>> result = await service.create_post(fields, files)
    >>> view = await service.get_post(result.slug)
    >>> view.markdown
    '# Hi'

Tests:
    - tests/unit/test_publisher.py
    - tests/integration/test_api_posts.py
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from blogstore.config import MAX_UPLOAD_BYTES, Settings
from blogstore.errors import (
    AuthError,
    ContentNotFoundError,
    DuplicateSlugError,
    InvalidKeyError,
    InvalidStoredKeyError,
    PostNotFoundError,
    SlugConflictError,
    StoreError,
    ValidationFailed,
)
from blogstore.models import BlogPost
from blogstore.repository import PostRepository
from blogstore.slug import slug_for_title
from blogstore.storage.manifest import BlobEntry
from blogstore.storage.naming import (
    generate_content_key,
    generate_image_key,
    generate_post_id,
    parse_content_key_timestamp,
    validate_key,
)
from blogstore.storage.service import StorageService
from blogstore.validation import (
    ImageForm,
    Invalid,
    PostForm,
    UploadedFile,
    validate_image_form,
    validate_post_form,
)

logger = logging.getLogger(__name__)

ORPHAN_MIN_AGE = timedelta(hours=1)


@dataclass
class PublishContext:
    """Everything the pipeline needs, passed in explicitly.

    Attributes:
        storage: Content store adapter.
        posts: Metadata store adapter.
        upload_token: Shared secret; None refuses every upload.
        max_upload_bytes: Per-file size limit.
        slug_retry_limit: Insert attempts on slug collisions.
    """

    storage: StorageService
    posts: PostRepository
    upload_token: str | None = None
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    slug_retry_limit: int = 5

    @classmethod
    def from_settings(
        cls, settings: Settings, storage: StorageService, posts: PostRepository
    ) -> "PublishContext":
        return cls(
            storage=storage,
            posts=posts,
            upload_token=settings.UPLOAD_TOKEN,
            max_upload_bytes=settings.MAX_UPLOAD_BYTES,
            slug_retry_limit=settings.SLUG_RETRY_LIMIT,
        )


@dataclass(frozen=True)
class PublishResult:
    """Identifiers assigned to a newly created post."""

    post_id: str
    content_key: str
    slug: str
    header_key: str | None = None


@dataclass(frozen=True)
class PostView:
    """A post's metadata joined with its decoded body."""

    post: BlogPost
    markdown: str


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of a delete.

    content_removed is False when the row is gone but one or more blobs
    could not be deleted; those keys are listed in orphaned_keys.
    """

    post_id: str
    content_removed: bool = True
    orphaned_keys: list[str] = field(default_factory=list)


class PublishService:
    """Orchestrates the content store and the metadata store."""

    def __init__(self, context: PublishContext) -> None:
        self.context = context
        self.storage = context.storage
        self.posts = context.posts

    def check_token(self, token: str) -> None:
        """Compare the submitted token with the shared secret.

        Raises:
            AuthError: On mismatch, or when no secret is configured.
        """
        expected = self.context.upload_token
        if not expected or not secrets.compare_digest(
            token.encode("utf-8"), expected.encode("utf-8")
        ):
            logger.warning("Upload rejected: invalid token")
            raise AuthError()

    async def create_post(
        self,
        fields: Mapping[str, Any],
        files: Mapping[str, UploadedFile | None],
    ) -> PublishResult:
        """Validate and publish a post.

        Args:
            fields: Text form fields.
            files: File parts ('file', optional 'header').

        Returns:
            PublishResult with id, keys and slug.

        Raises:
            ValidationFailed: Malformed input; nothing was written.
            AuthError: Token mismatch; nothing was written.
            SlugConflictError: Slug kept colliding; blobs were written.
            StoreError: A store operation failed; earlier writes are kept.
        """
        result = validate_post_form(fields, files, self.context.max_upload_bytes)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.errors)
        form: PostForm = result.value

        self.check_token(form.token)

        existing_slugs = await self.posts.list_slugs()

        post_id = generate_post_id()
        content_key = generate_content_key(form.content.filename)
        header_key = generate_image_key(form.header.filename) if form.header else None
        slug = slug_for_title(form.title, existing_slugs)

        # Blobs must be durable before any row references them
        await self.storage.put(content_key, form.content.data, form.content.media_type)
        if form.header and header_key:
            await self.storage.put(header_key, form.header.data, form.header.media_type)

        for attempt in range(1, self.context.slug_retry_limit + 1):
            post = BlogPost(
                id=post_id,
                title=form.title,
                description=form.description or "",
                category=form.category,
                tags=form.tags or "",
                content_key=content_key,
                header_key=header_key,
                slug=slug,
            )
            try:
                await self.posts.insert(post)
                break
            except DuplicateSlugError:
                logger.warning(
                    f"Slug '{slug}' taken concurrently "
                    f"(attempt {attempt}/{self.context.slug_retry_limit})"
                )
                if attempt < self.context.slug_retry_limit:
                    existing_slugs = await self.posts.list_slugs()
                    slug = slug_for_title(form.title, existing_slugs)
        else:
            raise SlugConflictError(f"No free slug for title {form.title!r}")

        logger.info(f"Post created: {post_id} ({slug})")
        return PublishResult(
            post_id=post_id,
            content_key=content_key,
            slug=slug,
            header_key=header_key,
        )

    async def upload_image(
        self,
        fields: Mapping[str, Any],
        files: Mapping[str, UploadedFile | None],
    ) -> BlobEntry:
        """Validate and store a standalone image.

        Returns:
            BlobEntry for the stored image.
        """
        result = validate_image_form(fields, files, self.context.max_upload_bytes)
        if isinstance(result, Invalid):
            raise ValidationFailed(result.errors)
        form: ImageForm = result.value

        self.check_token(form.token)

        key = generate_image_key(form.image.filename)
        entry = await self.storage.put(key, form.image.data, form.image.media_type)
        logger.info(f"Image stored: {key}")
        return entry

    async def list_posts(self) -> list[BlogPost]:
        """All post metadata, newest first. Bodies are not loaded."""
        return await self.posts.list_all()

    async def find_post(self, id_or_slug: str) -> BlogPost:
        """Look a post up by id, then by slug.

        Raises:
            PostNotFoundError: If neither matches.
        """
        post = await self.posts.get_by_id(id_or_slug)
        if post is None:
            post = await self.posts.get_by_slug(id_or_slug)
        if post is None:
            raise PostNotFoundError(f"Post not found: {id_or_slug}")
        return post

    async def get_post(self, id_or_slug: str) -> PostView:
        """Fetch a post's metadata and body.

        Raises:
            PostNotFoundError: No row for id_or_slug.
            ContentNotFoundError: The row exists but its body blob does not.
        """
        post = await self.find_post(id_or_slug)

        try:
            data = await self.storage.get(post.content_key)
        except InvalidKeyError as e:
            logger.error(f"Post {post.id} references an invalid key: {post.content_key!r}")
            raise ContentNotFoundError(f"Invalid content key for post {post.id}") from e

        if data is None:
            logger.warning(f"Content blob missing for post {post.id}: {post.content_key}")
            raise ContentNotFoundError(f"Content missing for post {post.id}")

        return PostView(post=post, markdown=data.decode("utf-8", errors="replace"))

    async def delete_post(self, post_id: str) -> DeleteResult:
        """Delete a post row, then its blobs.

        Raises:
            PostNotFoundError: No row for post_id; nothing is touched.
            InvalidStoredKeyError: The row references an unusable key;
                nothing is touched.
        """
        post = await self.posts.get_by_id(post_id)
        if post is None:
            raise PostNotFoundError(f"Post not found: {post_id}")

        keys = post.blob_keys
        for key in keys:
            try:
                validate_key(key)
            except InvalidKeyError as e:
                raise InvalidStoredKeyError(str(e)) from e

        if not await self.posts.delete(post_id):
            raise PostNotFoundError(f"Post not found: {post_id}")

        orphaned: list[str] = []
        for key in keys:
            try:
                await self.storage.delete(key)
            except StoreError:
                logger.warning(f"Post {post_id} deleted but blob {key} remains")
                orphaned.append(key)

        logger.info(f"Post deleted: {post_id}")
        return DeleteResult(
            post_id=post_id,
            content_removed=not orphaned,
            orphaned_keys=orphaned,
        )

    async def find_orphans(
        self,
        min_age: timedelta = ORPHAN_MIN_AGE,
        now: datetime | None = None,
    ) -> list[BlobEntry]:
        """Content blobs that no post row references.

        Only timestamped content keys are considered: image keys cannot be
        told apart from standalone images, which are never referenced.
        Blobs younger than min_age are skipped so an in-flight create is
        not mistaken for an orphan.
        """
        if now is None:
            now = datetime.now(timezone.utc)
        referenced = await self.posts.referenced_keys()

        orphans = []
        for entry in await self.storage.list():
            if entry.key in referenced:
                continue
            created = parse_content_key_timestamp(entry.key)
            if created is None or now - created < min_age:
                continue
            orphans.append(entry)
        return orphans

    async def prune_orphans(
        self,
        min_age: timedelta = ORPHAN_MIN_AGE,
        now: datetime | None = None,
    ) -> list[BlobEntry]:
        """Delete every orphan content blob.

        Returns:
            The entries that were deleted.
        """
        orphans = await self.find_orphans(min_age=min_age, now=now)
        for entry in orphans:
            await self.storage.delete(entry.key)
        logger.info(f"Pruned {len(orphans)} orphan blob(s)")
        return orphans
