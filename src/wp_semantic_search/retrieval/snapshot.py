"""
Index snapshot storage - Protocol and implementations.

Following the same pattern as the other stores:
1. Protocol defines the interface
2. FileSnapshotStore for production (one JSON file, replaced atomically)
3. InMemorySnapshotStore for testing (fast, no I/O)

FILE FORMAT:
------------
{
  "created_at": "2025-01-01T00:00:00+00:00",
  "model": "text-embedding-3-small",
  "total_documents": 2,
  "documents": [Document.to_dict(), ...],
  "embeddings": [[0.1, ...], ...]
}
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np

from wp_semantic_search.core.errors import EmbeddingGenerationError
from wp_semantic_search.retrieval.document import Document, parse_timestamp

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# SNAPSHOT DATA MODEL
# ---------------------------------------------------------------------------


@dataclass
class IndexSnapshot:
    """Parallel documents/embeddings plus the model that produced them."""

    documents: list[Document] = field(default_factory=list)
    embeddings: list[np.ndarray] = field(default_factory=list)
    model: str | None = None
    created_at: datetime | None = None

    @classmethod
    def empty(cls) -> "IndexSnapshot":
        return cls()

    @property
    def total_documents(self) -> int:
        return len(self.documents)

    @property
    def is_empty(self) -> bool:
        return not self.documents

    @property
    def dimensions(self) -> int | None:
        if not self.embeddings:
            return None
        return int(len(self.embeddings[0]))

    def validate(self) -> None:
        """Raise EmbeddingGenerationError if the parallel lists disagree."""
        if len(self.documents) != len(self.embeddings):
            raise EmbeddingGenerationError(
                f"Mismatch: {len(self.documents)} documents but "
                f"{len(self.embeddings)} embeddings"
            )
        dims = {len(e) for e in self.embeddings}
        if len(dims) > 1:
            raise EmbeddingGenerationError(
                f"Embeddings have inconsistent dimensions: {sorted(dims)}"
            )

    def to_dict(self) -> dict:
        created = self.created_at or datetime.now(timezone.utc)
        return {
            "created_at": created.isoformat(),
            "model": self.model,
            "total_documents": self.total_documents,
            "documents": [doc.to_dict() for doc in self.documents],
            "embeddings": [np.asarray(e, dtype=np.float32).tolist() for e in self.embeddings],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IndexSnapshot":
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot must be a JSON object, got {type(data).__name__}")
        snapshot = cls(
            documents=[Document.from_dict(d) for d in data.get("documents") or []],
            embeddings=[np.asarray(e, dtype=np.float32) for e in data.get("embeddings") or []],
            model=data.get("model"),
            created_at=parse_timestamp(data.get("created_at")),
        )
        snapshot.validate()
        return snapshot


# ---------------------------------------------------------------------------
# SNAPSHOT STORE PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class SnapshotStore(Protocol):
    """Protocol for snapshot storage implementations."""

    def load(self) -> IndexSnapshot:
        """Load the current snapshot; empty if none is usable."""
        ...

    def save(self, snapshot: IndexSnapshot) -> None:
        """Replace the current snapshot."""
        ...

    def exists(self) -> bool:
        """Whether a snapshot has been persisted."""
        ...


# ---------------------------------------------------------------------------
# FILE-BASED IMPLEMENTATION (Production)
# ---------------------------------------------------------------------------


class FileSnapshotStore:
    """Production snapshot store using one JSON file.

    save() writes to a temporary file in the same directory and renames it
    over the target, so a reader sees either the old or the new snapshot.
    """

    def __init__(self, file_path: Path | str):
        self._path = Path(file_path)

    @property
    def path(self) -> Path:
        """Get the snapshot file path."""
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> IndexSnapshot:
        """Load snapshot from JSON file; missing or corrupt yields empty."""
        if not self._path.exists():
            logger.warning(f"Embeddings file not found: {self._path}")
            return IndexSnapshot.empty()

        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
            return IndexSnapshot.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, EmbeddingGenerationError) as e:
            logger.error(f"Failed to load embeddings from {self._path}: {e}")
            return IndexSnapshot.empty()

    def save(self, snapshot: IndexSnapshot) -> None:
        """Validate, then atomically replace the JSON file."""
        snapshot.validate()
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_dict(), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info(f"Saved {snapshot.total_documents} embeddings to {self._path}")


# ---------------------------------------------------------------------------
# IN-MEMORY IMPLEMENTATION (Testing)
# ---------------------------------------------------------------------------


class InMemorySnapshotStore:
    """Test snapshot store - no file I/O.

    Tracks how many times save() was called so tests can assert that a
    failed build never persisted anything.
    """

    def __init__(self, snapshot: IndexSnapshot | None = None):
        self._snapshot = snapshot
        self.save_count = 0

    def exists(self) -> bool:
        return self._snapshot is not None

    def load(self) -> IndexSnapshot:
        return self._snapshot if self._snapshot is not None else IndexSnapshot.empty()

    def save(self, snapshot: IndexSnapshot) -> None:
        snapshot.validate()
        self._snapshot = snapshot
        self.save_count += 1


def get_snapshot_store(path: Path | str | None = None) -> FileSnapshotStore:
    """Factory for the configured file store."""
    if path is None:
        from wp_semantic_search.config import get_settings

        path = get_settings().embeddings_file
    return FileSnapshotStore(path)
