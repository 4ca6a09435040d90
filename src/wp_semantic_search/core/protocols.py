"""
Core protocols defining contracts for the entire system.

All infrastructure components implement these protocols,
enabling dependency injection and easy testing.

PATTERN: This follows the same structure as embeddings/openai_embeddings.py
- Protocol defines the contract
- Multiple implementations possible
- Factory functions for instantiation
- Test doubles for fast unit tests
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Protocol, runtime_checkable

import numpy as np


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations:
    - OpenAIEmbeddings (production)
    - MockEmbeddings (testing)
    """

    model: str

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts, one per input, in order."""
        ...


# ---------------------------------------------------------------------------
# SEARCH RESULT CONTRACT
# ---------------------------------------------------------------------------


@dataclass
class SearchResult:
    """
    One ranked hit, shared by the local and managed backends.

    score is a cosine similarity on the local path and either the model's
    own score or a rank-derived backfill on the managed path.
    """
    title: str
    link: str
    snippet: str
    score: float
    original_rank: int
    source: str | None = None
    document_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class SearchResponse:
    """Everything a caller gets back from Retriever.search()."""
    query: str
    backend: str
    results: list[SearchResult] = field(default_factory=list)
    search_time_ms: float = 0.0
    min_similarity: float | None = None
    message: str | None = None
    raw_text: str | None = None
    usage: dict[str, Any] | None = None

    @property
    def total_results(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "query": self.query,
            "backend": self.backend,
            "total_results": self.total_results,
            "results": [r.to_dict() for r in self.results],
            "search_time_ms": self.search_time_ms,
        }
        if self.min_similarity is not None:
            data["min_similarity"] = self.min_similarity
        if self.message:
            data["message"] = self.message
        if self.raw_text is not None:
            data["raw_text"] = self.raw_text
        if self.usage:
            data["usage"] = self.usage
        return data


# ---------------------------------------------------------------------------
# RETRIEVER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class Retriever(Protocol):
    """
    Contract for answering a query with ranked results.

    Implementations:
    - LocalRetriever (flat JSON snapshot + cosine similarity)
    - ManagedRetriever (OpenAI vector store + file_search)

    The two enforce relevance differently: the local path applies a numeric
    MIN_SIMILARITY cutoff, the managed path relies on the instruction prompt
    and has no numeric threshold.
    """

    def search(self, query: str, top_k: int = 10) -> SearchResponse:
        """Return at most top_k results for query."""
        ...
