"""Blogstore: content publishing backend.

Stores post bodies and header images in a blob store, post metadata in a
relational store, and serves them back by id or slug.
"""

__version__ = "1.0.0"
