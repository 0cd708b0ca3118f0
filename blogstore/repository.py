"""Post repository: the metadata store adapter.

Each method runs in its own session and transaction. Store failures are
logged and raised as StoreError; a slug collision on insert is raised as
DuplicateSlugError so the caller can re-resolve and retry.

Examples:
    >>> repo = PostRepository(create_session_factory(engine))
    >>> await repo.insert(post)
    >>> await repo.get_by_slug("my-first-post")
    <BlogPost(id=..., slug=my-first-post)>
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from blogstore.database import session_scope
from blogstore.errors import DuplicateSlugError, StoreError
from blogstore.models import BlogPost

logger = logging.getLogger(__name__)


class PostRepository:
    """Insert, look up, list and delete post rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def insert(self, post: BlogPost) -> BlogPost:
        """Insert a new row.

        Raises:
            DuplicateSlugError: If another row already holds post.slug.
            StoreError: On any other database failure.
        """
        try:
            async with session_scope(self.session_factory) as session:
                session.add(post)
        except IntegrityError as e:
            if "slug" in str(e.orig).lower():
                logger.warning(f"Slug already taken: {post.slug}")
                raise DuplicateSlugError(f"Slug already taken: {post.slug}") from e
            logger.error(f"Insert failed for post {post.id}: {e}")
            raise StoreError(f"Insert failed for post {post.id}") from e
        except SQLAlchemyError as e:
            logger.error(f"Insert failed for post {post.id}: {e}")
            raise StoreError(f"Insert failed for post {post.id}") from e

        return post

    async def get_by_id(self, post_id: str) -> BlogPost | None:
        return await self._first(select(BlogPost).where(BlogPost.id == post_id))

    async def get_by_slug(self, slug: str) -> BlogPost | None:
        return await self._first(select(BlogPost).where(BlogPost.slug == slug))

    async def list_all(self) -> list[BlogPost]:
        """List every post, newest first."""
        query = select(BlogPost).order_by(BlogPost.created_at.desc(), BlogPost.id)
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Listing posts failed: {e}")
            raise StoreError("Listing posts failed") from e

    async def list_slugs(self) -> set[str]:
        """Read the complete current slug set."""
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(select(BlogPost.slug))
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Listing slugs failed: {e}")
            raise StoreError("Listing slugs failed") from e

    async def referenced_keys(self) -> set[str]:
        """Every content store key referenced by a row."""
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(
                    select(BlogPost.content_key, BlogPost.header_key)
                )
                keys: set[str] = set()
                for content_key, header_key in result.all():
                    keys.add(content_key)
                    if header_key:
                        keys.add(header_key)
                return keys
        except SQLAlchemyError as e:
            logger.error(f"Listing referenced keys failed: {e}")
            raise StoreError("Listing referenced keys failed") from e

    async def delete(self, post_id: str) -> bool:
        """Delete a row by id.

        Returns:
            True if a row was deleted.
        """
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(
                    delete(BlogPost).where(BlogPost.id == post_id)
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Delete failed for post {post_id}: {e}")
            raise StoreError(f"Delete failed for post {post_id}") from e

    async def _first(self, query) -> BlogPost | None:
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(query)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Post lookup failed: {e}")
            raise StoreError("Post lookup failed") from e
