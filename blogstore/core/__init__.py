"""Core publishing pipeline."""

from blogstore.core.publisher import (
    DeleteResult,
    PostView,
    PublishContext,
    PublishResult,
    PublishService,
)

__all__ = [
    "DeleteResult",
    "PostView",
    "PublishContext",
    "PublishResult",
    "PublishService",
]
