"""Multipart form validation.

Rules are plain data (TextRule, FileRule) applied by small functions that
return a tagged result instead of raising, so they can be table-tested
without any HTTP plumbing.

Uploaded content is classified into MarkdownText, GenericFile or Image
before rules run; rules accept or reject whole kinds.

Examples:
    >>> from blogstore.validation import UploadedFile, validate_post_form
    >>> result = validate_post_form(
    ...     {"title": "My First Post", "category": "general", "token": "s3cret"},
    ...     {"file": UploadedFile("post.md", "text/markdown", b"# Hi")},
    ... )
    >>> result.ok
    True

Tests:
    - tests/unit/test_validation.py
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Generic, TypeVar, Union

from blogstore.config import MAX_UPLOAD_BYTES
from blogstore.errors import FieldError

T = TypeVar("T")

MARKDOWN_MEDIA_TYPES = frozenset({"text/markdown", "text/x-markdown"})
MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})
IMAGE_MEDIA_TYPES = {
    ".png": "image/png",
    ".webp": "image/webp",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
# Media types that say nothing about the content; fall back to the extension
GENERIC_MEDIA_TYPES = frozenset({"", "application/octet-stream", "text/plain"})

MARKDOWN_FIELD_FILENAME = "index.md"


# Uploaded content variants


@dataclass(frozen=True)
class UploadedFile:
    """A file part as received from the transport."""

    filename: str | None
    content_type: str | None
    data: bytes


@dataclass(frozen=True)
class MarkdownText:
    """A markdown/text post body."""

    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def kind(self) -> str:
        return "markdown"


@dataclass(frozen=True)
class Image:
    """An accepted raster image."""

    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def kind(self) -> str:
        return "image"


@dataclass(frozen=True)
class GenericFile:
    """Anything that is neither markdown nor an accepted image."""

    filename: str
    media_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def kind(self) -> str:
        return "file"


UploadContent = Union[MarkdownText, Image, GenericFile]


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def classify(upload: UploadedFile) -> UploadContent:
    """Classify an uploaded file by declared media type, then extension.

    Args:
        upload: Raw file part.

    Returns:
        MarkdownText, Image or GenericFile.
    """
    filename = upload.filename or ""
    media_type = _media_type(upload.content_type)
    ext = PurePosixPath(filename.replace("\\", "/")).suffix.lower()

    if media_type in MARKDOWN_MEDIA_TYPES:
        return MarkdownText(filename, media_type, upload.data)
    if media_type in IMAGE_MEDIA_TYPES.values():
        return Image(filename, media_type, upload.data)
    if media_type in GENERIC_MEDIA_TYPES:
        if ext in MARKDOWN_EXTENSIONS:
            return MarkdownText(filename, "text/markdown", upload.data)
        if ext in IMAGE_MEDIA_TYPES:
            return Image(filename, IMAGE_MEDIA_TYPES[ext], upload.data)
    return GenericFile(filename, media_type or "application/octet-stream", upload.data)


def markdown_from_text(text: str) -> MarkdownText:
    """Wrap a markdown form field as post content."""
    return MarkdownText(MARKDOWN_FIELD_FILENAME, "text/markdown", text.encode("utf-8"))


# Rules


@dataclass(frozen=True)
class TextRule:
    """Constraints on a text form field."""

    field: str
    label: str
    required: bool = False
    max_length: int | None = None

    def check(self, value: Any) -> tuple[str | None, FieldError | None]:
        """Return the cleaned value or an error. Blank counts as absent."""
        if value is not None and not isinstance(value, str):
            return None, FieldError(self.field, f"{self.label} must be a string")
        if value is None or not value.strip():
            if self.required:
                return None, FieldError(self.field, f"{self.label} is required")
            return None, None
        if self.max_length is not None and len(value) > self.max_length:
            return None, FieldError(
                self.field,
                f"{self.label} must be at most {self.max_length} characters",
            )
        return value, None


@dataclass(frozen=True)
class FileRule:
    """Constraints on a file form field."""

    field: str
    label: str
    accepted: tuple[type, ...]
    required: bool = True
    max_bytes: int = MAX_UPLOAD_BYTES

    def too_large(self) -> FieldError:
        limit_mb = self.max_bytes // (1024 * 1024)
        return FieldError(self.field, f"{self.label} size must be less than {limit_mb}MB")

    def check(self, content: UploadContent | None) -> FieldError | None:
        if content is None:
            if self.required:
                return FieldError(self.field, f"{self.label} is required")
            return None
        if content.size > self.max_bytes:
            return self.too_large()
        if not isinstance(content, self.accepted):
            return FieldError(
                self.field,
                f"Unsupported {self.label.lower()} type: {content.media_type}",
            )
        return None


POST_TEXT_RULES = (
    TextRule("title", "Title", required=True, max_length=200),
    TextRule("description", "Description", max_length=1000),
    TextRule("category", "Category", required=True, max_length=50),
    TextRule("tags", "Tags", max_length=200),
)
TOKEN_RULE = TextRule("token", "Token", required=True)
MARKDOWN_RULE = TextRule("markdown", "Markdown")

CONTENT_FILE_RULE = FileRule("file", "File", accepted=(MarkdownText,))
HEADER_FILE_RULE = FileRule("header", "Header", accepted=(Image,), required=False)
IMAGE_FILE_RULE = FileRule("file", "File", accepted=(Image,))


# Results


@dataclass(frozen=True)
class Valid(Generic[T]):
    """Successful validation carrying the typed value."""

    value: T
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    """Failed validation carrying every field error, in rule order."""

    errors: list[FieldError]
    ok: bool = False


ValidationResult = Union[Valid[T], Invalid]


@dataclass(frozen=True)
class PostForm:
    """A validated post upload."""

    content: MarkdownText
    title: str
    category: str
    token: str
    description: str | None = None
    tags: str | None = None
    header: Image | None = None


@dataclass(frozen=True)
class ImageForm:
    """A validated standalone image upload."""

    image: Image
    token: str


def oversized_content_error(max_bytes: int | None = None) -> FieldError:
    """The error reported when a post body exceeds the upload limit."""
    return _with_limit(CONTENT_FILE_RULE, max_bytes).too_large()


def _with_limit(rule: FileRule, max_bytes: int | None) -> FileRule:
    if max_bytes is None:
        return rule
    return FileRule(rule.field, rule.label, rule.accepted, rule.required, max_bytes)


def validate_post_form(
    fields: Mapping[str, Any],
    files: Mapping[str, UploadedFile | None],
    max_bytes: int | None = None,
) -> ValidationResult[PostForm]:
    """Validate a post upload.

    The body comes from the 'file' part, or from the 'markdown' text field
    when no file is sent.

    Args:
        fields: Text form fields.
        files: File parts keyed by field name.
        max_bytes: Override per-file size limit.

    Returns:
        Valid[PostForm] or Invalid.
    """
    errors: list[FieldError] = []

    content_rule = _with_limit(CONTENT_FILE_RULE, max_bytes)
    header_rule = _with_limit(HEADER_FILE_RULE, max_bytes)

    upload = files.get("file")
    content: UploadContent | None = classify(upload) if upload is not None else None
    if content is None:
        markdown, error = MARKDOWN_RULE.check(fields.get("markdown"))
        if error:
            errors.append(error)
        elif markdown is not None:
            content = markdown_from_text(markdown)
    error = content_rule.check(content)
    if error:
        errors.append(error)

    header_upload = files.get("header")
    header = classify(header_upload) if header_upload is not None else None
    error = header_rule.check(header)
    if error:
        errors.append(error)

    cleaned: dict[str, str | None] = {}
    for rule in (TOKEN_RULE, *POST_TEXT_RULES):
        cleaned[rule.field], error = rule.check(fields.get(rule.field))
        if error:
            errors.append(error)

    if errors:
        return Invalid(errors)

    return Valid(PostForm(
        content=content,
        title=cleaned["title"],
        category=cleaned["category"],
        token=cleaned["token"],
        description=cleaned["description"],
        tags=cleaned["tags"],
        header=header,
    ))


def validate_image_form(
    fields: Mapping[str, Any],
    files: Mapping[str, UploadedFile | None],
    max_bytes: int | None = None,
) -> ValidationResult[ImageForm]:
    """Validate a standalone image upload.

    Args:
        fields: Text form fields.
        files: File parts keyed by field name.
        max_bytes: Override per-file size limit.

    Returns:
        Valid[ImageForm] or Invalid.
    """
    errors: list[FieldError] = []

    upload = files.get("file")
    image = classify(upload) if upload is not None else None
    error = _with_limit(IMAGE_FILE_RULE, max_bytes).check(image)
    if error:
        errors.append(error)

    token, error = TOKEN_RULE.check(fields.get("token"))
    if error:
        errors.append(error)

    if errors:
        return Invalid(errors)
    return Valid(ImageForm(image=image, token=token))
