"""HTTP routes for Blogstore."""

from blogstore.api.posts import router as posts_router

__all__ = ["posts_router"]
