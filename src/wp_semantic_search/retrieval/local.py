"""
Local retriever - cosine similarity over the persisted JSON snapshot.

search(query, top_k):
1. Reject empty queries (InvalidQueryError)
2. Load the snapshot; empty -> zero results with a "run indexing" message
3. Embed the query once with the snapshot's model
4. Score, threshold at MIN_SIMILARITY, stable-sort, truncate to top_k
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import openai

from wp_semantic_search.core.errors import (
    EmbeddingGenerationError,
    EmbeddingModelMismatchError,
    InvalidQueryError,
)
from wp_semantic_search.core.protocols import SearchResponse, SearchResult
from wp_semantic_search.observability import get_tracer, search_attributes
from wp_semantic_search.observability.attributes import SEARCH_RESULT_COUNT
from wp_semantic_search.retrieval.similarity import rank

if TYPE_CHECKING:
    from wp_semantic_search.core import EmbeddingProvider
    from wp_semantic_search.retrieval.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

EMPTY_INDEX_MESSAGE = "No documents found. Please run the indexing script first."
BACKEND = "local"


def validate_query(query: str | None) -> str:
    """Return the trimmed query or raise InvalidQueryError."""
    if not isinstance(query, str) or not query.strip():
        raise InvalidQueryError()
    return query.strip()


class LocalRetriever:
    """
    Retriever over a flat index snapshot.

    Implements the Retriever protocol. The snapshot is read on every search,
    so a rebuild is picked up without restarting.
    """

    def __init__(
        self,
        embeddings: EmbeddingProvider,
        store: SnapshotStore,
        min_similarity: float = 0.30,
    ):
        self._embeddings = embeddings
        self._store = store
        self.min_similarity = min_similarity

    def _embed_query(self, query: str):
        try:
            return self._embeddings.embed(query)
        except openai.OpenAIError as e:
            raise EmbeddingGenerationError(f"Failed to generate embedding: {e}") from e

    def search(self, query: str, top_k: int = 10) -> SearchResponse:
        """Search the snapshot for documents similar to query."""
        start = time.perf_counter()
        query_text = validate_query(query)

        attrs = search_attributes(BACKEND, query_text, top_k, self.min_similarity)
        with get_tracer().start_span("search.local", attributes=attrs) as span:
            logger.info(f"Searching for: \"{query_text}\" (top_k={top_k}, min_similarity={self.min_similarity})")

            snapshot = self._store.load()
            if snapshot.is_empty:
                span.set_attribute(SEARCH_RESULT_COUNT, 0)
                return SearchResponse(
                    query=query,
                    backend=BACKEND,
                    search_time_ms=_elapsed_ms(start),
                    min_similarity=self.min_similarity,
                    message=EMPTY_INDEX_MESSAGE,
                )

            if snapshot.model and snapshot.model != self._embeddings.model:
                raise EmbeddingModelMismatchError(
                    f"Index was built with {snapshot.model} but queries use "
                    f"{self._embeddings.model}; rebuild the index or set "
                    f"OPENAI_EMBEDDING_MODEL={snapshot.model}"
                )

            query_vector = self._embed_query(query_text)
            if snapshot.dimensions is not None and len(query_vector) != snapshot.dimensions:
                raise EmbeddingModelMismatchError(
                    f"Query embedding has {len(query_vector)} dimensions, "
                    f"index has {snapshot.dimensions}"
                )

            ranked = rank(query_vector, snapshot.embeddings, self.min_similarity, top_k)
            results = []
            for position, (index, score) in enumerate(ranked, start=1):
                doc = snapshot.documents[index]
                results.append(
                    SearchResult(
                        title=doc.title,
                        link=doc.link,
                        snippet=doc.excerpt,
                        score=score,
                        original_rank=position,
                        document_id=doc.id,
                    )
                )

            span.set_attribute(SEARCH_RESULT_COUNT, len(results))
            response = SearchResponse(
                query=query,
                backend=BACKEND,
                results=results,
                search_time_ms=_elapsed_ms(start),
                min_similarity=self.min_similarity,
            )
            logger.info(
                f"Search completed in {response.search_time_ms:.0f}ms, "
                f"found {response.total_results} results"
            )
            return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
