"""Storage key and post id generation.

Content keys sort by creation time; image keys only need to be unique.

Format:
    content: {YYYY-MM-DDTHH-MM-SS-mmmZ}-{uid6}-{filename}
    image:   {uid8}-{filename}

Examples:
    >>> from datetime import datetime, timezone
    >>> from blogstore.storage.naming import generate_content_key, generate_image_key
    >>> generate_content_key("post.md", now=datetime(2026, 2, 9, 8, 15, 2, 123000, tzinfo=timezone.utc), uid="a3f2b1")
    '2026-02-09T08-15-02-123Z-a3f2b1-post.md'
    >>> generate_image_key("cover.png", uid="a3f2b1c4")
    'a3f2b1c4-cover.png'
"""

from __future__ import annotations

import re
import secrets
import string
import uuid
from datetime import datetime, timezone

from blogstore.errors import InvalidKeyError

POST_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
POST_ID_LENGTH = 21


def safe_filename(name: str | None) -> str:
    """Reduce an uploaded filename to a key-safe final component.

    Rules:
        - Keep only the last path component (either separator)
        - Replace anything outside [A-Za-z0-9._-] with '-'
        - Strip leading dots and hyphens
        - Fallback to 'file' if empty

    Args:
        name: Client-supplied filename.

    Returns:
        Sanitized filename.
    """
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    base = re.sub(r"[^A-Za-z0-9._-]", "-", base)
    base = base.lstrip(".-")
    return base or "file"


def format_timestamp(now: datetime | None = None) -> str:
    """Render a UTC instant as a key-safe, lexically sortable string."""
    if now is None:
        now = datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return re.sub(r"[:.]", "-", iso)


def generate_content_key(
    filename: str | None,
    now: datetime | None = None,
    uid: str | None = None,
) -> str:
    """Generate the key for a post body blob.

    The random segment keeps two uploads of the same filename within the
    same millisecond apart.

    Args:
        filename: Original filename.
        now: Override timestamp (defaults to now UTC).
        uid: Override random segment (defaults to 6 random hex chars).

    Returns:
        Key string, timestamp first.
    """
    if uid is None:
        uid = uuid.uuid4().hex[:6]
    else:
        uid = uid[:6]
    return f"{format_timestamp(now)}-{uid}-{safe_filename(filename)}"


def generate_image_key(filename: str | None, uid: str | None = None) -> str:
    """Generate the key for a header or standalone image blob.

    Args:
        filename: Original filename.
        uid: Override random id (defaults to 8 random hex chars).

    Returns:
        Key string.
    """
    if uid is None:
        uid = uuid.uuid4().hex[:8]
    else:
        uid = uid[:8]
    return f"{uid}-{safe_filename(filename)}"


def generate_post_id(size: int = POST_ID_LENGTH) -> str:
    """Generate an opaque post identifier.

    Each character is drawn from a 64-symbol URL-safe alphabet, so the
    default length carries 126 bits of entropy.
    """
    return "".join(POST_ID_ALPHABET[b & 63] for b in secrets.token_bytes(size))


def validate_key(key: str | None) -> str:
    """Check that a key can be used as a relative object name.

    Raises:
        InvalidKeyError: For empty, absolute, traversing or NUL-containing keys.
    """
    if not key or not key.strip():
        raise InvalidKeyError("Storage key is empty")
    if "\x00" in key or "\\" in key:
        raise InvalidKeyError(f"Storage key contains forbidden characters: {key!r}")
    if key.startswith("/"):
        raise InvalidKeyError(f"Storage key must be relative: {key!r}")
    if any(part in ("", ".", "..") for part in key.split("/")):
        raise InvalidKeyError(f"Storage key has an invalid path segment: {key!r}")
    return key


_CONTENT_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2})-(\d{2})-(\d{2})-(\d{3})Z-")


def parse_content_key_timestamp(key: str) -> datetime | None:
    """Recover the creation instant from a content key.

    Returns:
        UTC datetime, or None if key is not a content key.
    """
    match = _CONTENT_KEY_RE.match(key)
    if not match:
        return None
    year, month, day, hour, minute, second, millis = (int(g) for g in match.groups())
    try:
        return datetime(
            year, month, day, hour, minute, second, millis * 1000, tzinfo=timezone.utc
        )
    except ValueError:
        return None
