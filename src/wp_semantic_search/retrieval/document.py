"""
Document model for the retrieval system.

Single responsibility: Define the structure of a normalized post as it is
embedded and persisted in the index snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Document:
    """
    A normalized WordPress post.

    Immutable once built by the normalizer. `text` is the exact string that
    was sent to the embedding model (title + excerpt or body, truncated).
    """
    id: str
    title: str
    excerpt: str
    body: str
    link: str
    text: str
    timestamp: datetime | None = None
    post_id: int | str | None = None
    slug: str | None = None
    modified: str | None = None
    status: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "excerpt": self.excerpt,
            "body": self.body,
            "link": self.link,
            "text": self.text,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "post_id": self.post_id,
            "slug": self.slug,
            "modified": self.modified,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        """Rebuild a document from its snapshot form."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            excerpt=data.get("excerpt") or "",
            body=data.get("body") or "",
            link=data.get("link") or "",
            text=data.get("text") or "",
            timestamp=parse_timestamp(data.get("timestamp")),
            post_id=data.get("post_id"),
            slug=data.get("slug"),
            modified=data.get("modified"),
            status=data.get("status"),
        )


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; WordPress omits the zone on `date`."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
