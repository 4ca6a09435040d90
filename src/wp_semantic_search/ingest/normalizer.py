"""
Document normalizer - raw WordPress post -> Document.

Posts whose text ends up empty or too short are skipped with a log line;
a bad post never aborts the run.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from wp_semantic_search.retrieval.document import Document, parse_timestamp

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 8000
MIN_TEXT_CHARS = 10
EXCERPT_FALLBACK_CHARS = 300
ELLIPSIS = "..."

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_ENTITY_RE = re.compile(r"&[a-zA-Z0-9#]+;")
_WS_RE = re.compile(r"\s+")


def strip_html(html: Any) -> str:
    """Drop script/style blocks, tags and entities; collapse whitespace."""
    text = str(html or "")
    text = _SCRIPT_RE.sub(" ", text)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = _ENTITY_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


def build_text(title: str, excerpt: str, body: str, max_chars: int = MAX_TEXT_CHARS) -> str:
    """Title plus excerpt (or body when there is no excerpt), truncated."""
    text = f"{title}\n\n{excerpt or body}".strip()
    if len(text) > max_chars:
        text = text[:max_chars] + ELLIPSIS
    return text


def _rendered(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if isinstance(value, dict):
        value = value.get("rendered")
    return strip_html(value)


def normalize_post(
    raw: dict[str, Any],
    max_chars: int = MAX_TEXT_CHARS,
    min_chars: int = MIN_TEXT_CHARS,
    fallback_link_base: str | None = None,
) -> Document | None:
    """
    Normalize one WP REST post record.

    Returns None when the post has too little text to be worth embedding.
    """
    post_id = raw.get("id")
    title = _rendered(raw, "title")
    excerpt = _rendered(raw, "excerpt")
    body = _rendered(raw, "content")

    text = build_text(title, excerpt, body, max_chars=max_chars)
    if len(text) < min_chars:
        logger.info(f"Skipping post {post_id} - insufficient content")
        return None

    link = raw.get("link") or ""
    if not link and fallback_link_base and post_id is not None:
        link = f"{fallback_link_base.rstrip('/')}/?p={post_id}"

    if not excerpt and body:
        excerpt = body[:EXCERPT_FALLBACK_CHARS] + ELLIPSIS

    return Document(
        id=f"post-{post_id if post_id is not None else raw.get('slug')}",
        title=title,
        excerpt=excerpt,
        body=body,
        link=link,
        text=text,
        timestamp=parse_timestamp(raw.get("date")),
        post_id=post_id,
        slug=raw.get("slug"),
        modified=raw.get("modified"),
        status=raw.get("status"),
    )


def normalize_posts(
    posts: Iterable[dict[str, Any]],
    max_chars: int = MAX_TEXT_CHARS,
    min_chars: int = MIN_TEXT_CHARS,
    fallback_link_base: str | None = None,
) -> list[Document]:
    """Normalize every post, dropping the ones normalize_post rejects."""
    documents = []
    skipped = 0
    for raw in posts:
        doc = normalize_post(
            raw,
            max_chars=max_chars,
            min_chars=min_chars,
            fallback_link_base=fallback_link_base,
        )
        if doc is None:
            skipped += 1
            continue
        documents.append(doc)

    logger.info(f"Processed {len(documents)} documents ({skipped} skipped)")
    return documents
