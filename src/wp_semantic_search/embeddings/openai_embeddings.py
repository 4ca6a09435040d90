"""
Embeddings Module - Single Responsibility: Generate text embeddings.

It has ONE job: convert text to vector embeddings. Batching, pacing and
retry policy belong to the index builder; provider exceptions propagate
unchanged so the caller can tell a rate limit from a hard failure.
"""

from __future__ import annotations

import hashlib
import os
from typing import TYPE_CHECKING

import numpy as np

from wp_semantic_search.core.protocols import EmbeddingProvider

if TYPE_CHECKING:
    from openai import OpenAI


MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddings:
    """
    OpenAI-based embedding provider.

    Uses text-embedding-3-small by default (1536 dimensions).
    """

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: str | None = None,
        client: "OpenAI | None" = None,
    ):
        self.model = model
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key or os.environ.get("OPENAI_API_KEY"))
        self._client = client

    @property
    def dimensions(self) -> int:
        """Return embedding dimensions for the model."""
        return MODEL_DIMENSIONS.get(self.model, 1536)

    def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        response = self._client.embeddings.create(
            input=text,
            model=self.model
        )
        return np.array(response.data[0].embedding, dtype=np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """
        Generate embeddings for multiple texts in one request.

        The API echoes an index per item; results are re-ordered by it so the
        i-th vector always belongs to the i-th text.
        """
        if not texts:
            return []

        response = self._client.embeddings.create(
            input=texts,
            model=self.model
        )
        items = sorted(response.data, key=lambda item: getattr(item, "index", 0))
        return [
            np.array(item.embedding, dtype=np.float32)
            for item in items
        ]


class MockEmbeddings:
    """
    Mock embedding provider for testing without API calls.

    Generates deterministic pseudo-embeddings seeded from text hashes.
    NOT for production use - only for testing/development.
    """

    def __init__(self, dimensions: int = 1536, model: str = "mock-embedding"):
        self._dimensions = dimensions
        self.model = model

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic pseudo-embedding from text hash."""
        seed = int.from_bytes(hashlib.sha256(text.encode()).digest()[:8], "big")
        rng = np.random.default_rng(seed)
        return rng.standard_normal(self._dimensions).astype(np.float32)

    def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """Generate embeddings for multiple texts."""
        return [self.embed(text) for text in texts]


def get_embedding_provider(
    use_mock: bool = False,
    model: str | None = None,
    client: "OpenAI | None" = None,
) -> EmbeddingProvider:
    """
    Factory function to get the appropriate embedding provider.

    Args:
        use_mock: If True, return MockEmbeddings (for testing)
        model: Embedding model name (defaults to the configured model)
        client: Pre-built OpenAI client to share with other components
    """
    if use_mock:
        return MockEmbeddings()

    from wp_semantic_search.config import get_settings

    settings = get_settings()
    if client is None:
        client = settings.make_openai_client()
    return OpenAIEmbeddings(model=model or settings.embedding_model, client=client)
