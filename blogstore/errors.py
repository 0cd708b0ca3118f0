"""Error taxonomy for the publishing pipeline.

Every error carries the HTTP status it maps to, so the transport layer
translates them with a single exception handler.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class BlogstoreError(Exception):
    """Base class for errors raised by the publishing pipeline."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)

    @property
    def details(self) -> list[dict[str, Any]] | None:
        return None


class ValidationFailed(BlogstoreError):
    """Malformed, missing, oversized or wrong-type form fields."""

    status_code = 400
    public_message = "Validation failed"

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__(self.public_message)
        self.errors = list(errors)

    @property
    def details(self) -> list[dict[str, Any]]:
        return [error.to_dict() for error in self.errors]


class AuthError(BlogstoreError):
    """Shared-secret token mismatch."""

    status_code = 403
    public_message = "Invalid token"


class PostNotFoundError(BlogstoreError):
    """No metadata row for the requested id or slug."""

    status_code = 404
    public_message = "Post not found"


class ContentNotFoundError(BlogstoreError):
    """The metadata row exists but its content blob does not."""

    status_code = 404
    public_message = "Post content not found"


class InvalidKeyError(BlogstoreError, ValueError):
    """A blob key that cannot be addressed safely."""

    status_code = 400
    public_message = "Invalid storage key"


class InvalidStoredKeyError(InvalidKeyError):
    """A metadata row references a key that fails key validation."""

    public_message = "Invalid stored key"


class StoreError(BlogstoreError):
    """An underlying content or metadata store operation failed.

    The message is logged server-side; clients only see the generic
    public message.
    """

    status_code = 500


class DuplicateSlugError(StoreError):
    """The metadata store rejected an insert because the slug is taken."""

    status_code = 409
    public_message = "Slug already exists"


class SlugConflictError(StoreError):
    """Slug resolution kept colliding with concurrent creates."""

    status_code = 409
    public_message = "Could not allocate a unique slug"
