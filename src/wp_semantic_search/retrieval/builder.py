"""
Embedding index builder - Documents -> persisted IndexSnapshot.

Pipeline:
1. Split documents into batches of `batch_size` (provider limit: 100 inputs)
2. Embed each batch; a response with the wrong number of vectors aborts
3. Sleep between batches; on a rate limit, retry the SAME batch with
   exponential backoff instead of restarting the build
4. Check the final document/vector counts and persist in one atomic write

Nothing is written unless every batch succeeded, so a failed rebuild leaves
the previous snapshot in place.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np
import openai

from wp_semantic_search.core.errors import EmbeddingGenerationError
from wp_semantic_search.observability import batch_attributes, get_tracer
from wp_semantic_search.observability.attributes import (
    INDEX_BATCH_RETRIES,
    INDEX_DOCUMENT_COUNT,
)
from wp_semantic_search.retrieval.snapshot import IndexSnapshot

if TYPE_CHECKING:
    from wp_semantic_search.core import EmbeddingProvider
    from wp_semantic_search.retrieval.document import Document
    from wp_semantic_search.retrieval.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def iter_batches(items: Sequence, batch_size: int):
    """Yield consecutive slices of at most batch_size items."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    for start in range(0, len(items), batch_size):
        yield items[start:start + batch_size]


class EmbeddingIndexBuilder:
    """
    Builds and persists an index snapshot.

    Dependencies are INJECTED: the embedding provider, the snapshot store and
    the sleep function (so tests run without waiting).
    """

    def __init__(
        self,
        embeddings: EmbeddingProvider,
        store: SnapshotStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_s: float = 0.1,
        max_retries: int = 5,
        backoff_base_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._embeddings = embeddings
        self._store = store
        self.batch_size = batch_size
        self.batch_delay_s = batch_delay_s
        self.max_retries = max_retries
        self.backoff_base_s = backoff_base_s
        self._sleep = sleep

    def embed_documents(self, documents: Sequence[Document]) -> list[np.ndarray]:
        """Embed every document, batch by batch, preserving order."""
        batches = list(iter_batches(documents, self.batch_size))
        vectors: list[np.ndarray] = []

        for batch_index, batch in enumerate(batches):
            logger.info(
                f"Processing batch {batch_index + 1}/{len(batches)} ({len(batch)} documents)..."
            )
            vectors.extend(self._embed_batch(batch_index, batch))

            if batch_index < len(batches) - 1 and self.batch_delay_s > 0:
                self._sleep(self.batch_delay_s)

        logger.info(f"Generated {len(vectors)} embeddings total")
        return vectors

    def _embed_batch(self, batch_index: int, batch: Sequence[Document]) -> list[np.ndarray]:
        texts = [doc.text for doc in batch]
        attrs = batch_attributes(batch_index, len(batch), self._embeddings.model)

        with get_tracer().start_span("index.embed_batch", attributes=attrs) as span:
            attempt = 0
            while True:
                try:
                    vectors = self._embeddings.embed_batch(texts)
                    break
                except openai.RateLimitError as e:
                    if attempt >= self.max_retries:
                        raise EmbeddingGenerationError(
                            f"rate limited after {attempt} retries: {e}",
                            batch_index=batch_index,
                        ) from e
                    delay = self.backoff_base_s * (2 ** attempt)
                    attempt += 1
                    logger.warning(
                        f"Rate limited on batch {batch_index + 1}, retry {attempt}/"
                        f"{self.max_retries} in {delay:.1f}s"
                    )
                    self._sleep(delay)
                except openai.OpenAIError as e:
                    raise EmbeddingGenerationError(str(e), batch_index=batch_index) from e

            span.set_attribute(INDEX_BATCH_RETRIES, attempt)

        if len(vectors) != len(batch):
            raise EmbeddingGenerationError(
                f"requested {len(batch)} embeddings but received {len(vectors)}",
                batch_index=batch_index,
            )
        logger.info(f"  Generated {len(vectors)} embeddings")
        return vectors

    def build(self, documents: Sequence[Document]) -> IndexSnapshot:
        """
        Embed documents and persist the snapshot.

        Raises:
            EmbeddingGenerationError: on any batch failure or count mismatch;
                the store is not touched in that case.
        """
        with get_tracer().start_span(
            "index.build", attributes={INDEX_DOCUMENT_COUNT: len(documents)}
        ):
            logger.info(
                f"Generating embeddings for {len(documents)} documents "
                f"with {self._embeddings.model}..."
            )
            vectors = self.embed_documents(documents)

            if len(vectors) != len(documents):
                raise EmbeddingGenerationError(
                    f"Mismatch: {len(documents)} documents but {len(vectors)} embeddings"
                )

            snapshot = IndexSnapshot(
                documents=list(documents),
                embeddings=vectors,
                model=self._embeddings.model,
                created_at=datetime.now(timezone.utc),
            )
            self._store.save(snapshot)
            return snapshot
