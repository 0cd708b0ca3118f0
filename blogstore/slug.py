"""URL slug generation for post titles.

Examples:
    >>> from blogstore.slug import normalize, resolve
    >>> normalize("Hello, World! / Foo & Bar @ 50%")
    'hello-world-foo-and-bar-at-50percent'
    >>> resolve("post", ["post", "post-1"])
    'post-2'

Tests:
    - tests/unit/test_slug.py
"""

from __future__ import annotations

import re
from collections.abc import Iterable

FALLBACK_SLUG = "post"

_SUBSTITUTIONS = (
    (re.compile(r"\s+"), "-"),
    (re.compile(r"[/\\]"), "-"),
    (re.compile(r"&"), "and"),
    (re.compile(r"@"), "at"),
    (re.compile(r"%"), "percent"),
    (re.compile(r"[?#!]"), ""),
    (re.compile(r"[^a-z0-9-]"), ""),
    (re.compile(r"-+"), "-"),
)


def normalize(title: str) -> str:
    """Turn a title into a URL-safe slug.

    Pure and idempotent: normalize(normalize(s)) == normalize(s).

    Args:
        title: Post title.

    Returns:
        Slug made of [a-z0-9-], possibly empty.
    """
    slug = title.lower().strip()
    for pattern, replacement in _SUBSTITUTIONS:
        slug = pattern.sub(replacement, slug)
    return slug.strip("-")


def resolve(base_slug: str, existing_slugs: Iterable[str]) -> str:
    """Make a slug unique against the current slug set.

    Appends the smallest positive integer suffix that is free.

    Args:
        base_slug: Normalized slug.
        existing_slugs: Every slug currently stored.

    Returns:
        base_slug, or base_slug-N.
    """
    taken = set(existing_slugs)
    slug = base_slug
    counter = 1
    while slug in taken:
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug


def slug_for_title(title: str, existing_slugs: Iterable[str]) -> str:
    """Normalize a title and resolve it against existing slugs."""
    return resolve(normalize(title) or FALLBACK_SLUG, existing_slugs)
