"""
Ingest module - getting posts out of WordPress and into Document form.

- WordPressClient: paginated WP REST reader
- normalize_post / normalize_posts: HTML stripping, truncation, skipping
"""

from wp_semantic_search.ingest.normalizer import (
    strip_html,
    build_text,
    normalize_post,
    normalize_posts,
    MAX_TEXT_CHARS,
    MIN_TEXT_CHARS,
)
from wp_semantic_search.ingest.wordpress import WordPressClient

__all__ = [
    "strip_html",
    "build_text",
    "normalize_post",
    "normalize_posts",
    "MAX_TEXT_CHARS",
    "MIN_TEXT_CHARS",
    "WordPressClient",
]
