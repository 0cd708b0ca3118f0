"""FastAPI dependencies.

The publishing service is built once in the application lifespan and
stored on app.state; routes receive it through get_publisher so tests can
override it.
"""

from __future__ import annotations

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from blogstore.config import MAX_UPLOAD_BYTES
from blogstore.core.publisher import PublishService
from blogstore.errors import ValidationFailed
from blogstore.validation import UploadedFile, oversized_content_error


def get_publisher(request: Request) -> PublishService:
    """Return the application's PublishService."""
    return request.app.state.publisher


async def read_multipart(
    request: Request,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> tuple[dict[str, str], dict[str, UploadedFile | None]]:
    """Split a multipart body into text fields and file parts.

    Empty file inputs (no filename, no bytes) are treated as absent.
    Repeated fields keep their first value. At most max_bytes + 1 bytes are
    kept per part, enough for validation to see that it is oversized.

    Raises:
        ValidationFailed: A text part (the 'markdown' body) exceeds max_bytes.
    """
    fields: dict[str, str] = {}
    files: dict[str, UploadedFile | None] = {}

    try:
        form = await request.form(max_part_size=max_bytes + 1)
    except (HTTPException, MultiPartException) as e:
        message = getattr(e, "detail", None) or getattr(e, "message", "")
        if "maximum size" in str(message):
            raise ValidationFailed([oversized_content_error(max_bytes)]) from e
        raise

    try:
        for name, value in form.multi_items():
            if name in fields or name in files:
                continue
            if isinstance(value, UploadFile):
                data = await value.read(max_bytes + 1)
                if not value.filename and not data:
                    continue
                files[name] = UploadedFile(
                    filename=value.filename,
                    content_type=value.content_type,
                    data=data,
                )
            else:
                fields[name] = value
    finally:
        await form.close()

    return fields, files
