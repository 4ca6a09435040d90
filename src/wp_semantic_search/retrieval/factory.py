"""
Factory functions for the two Retriever variants.

Callers depend only on the Retriever protocol; which backend they get is a
configuration choice made here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from wp_semantic_search.config import Settings, get_settings

if TYPE_CHECKING:
    from wp_semantic_search.core import EmbeddingProvider, Retriever

Backend = Literal["local", "managed"]


def get_local_retriever(
    settings: Settings | None = None,
    embeddings: EmbeddingProvider | None = None,
):
    from wp_semantic_search.embeddings import get_embedding_provider
    from wp_semantic_search.retrieval.local import LocalRetriever
    from wp_semantic_search.retrieval.snapshot import get_snapshot_store

    settings = settings or get_settings()
    if embeddings is None:
        embeddings = get_embedding_provider(model=settings.embedding_model)
    return LocalRetriever(
        embeddings=embeddings,
        store=get_snapshot_store(settings.embeddings_file),
        min_similarity=settings.min_similarity,
    )


def get_managed_retriever(settings: Settings | None = None):
    from wp_semantic_search.managed.client import ManagedRetriever, binding_from_settings

    settings = settings or get_settings()
    binding = binding_from_settings(settings)
    return ManagedRetriever(client=settings.make_openai_client(), binding=binding)


def get_retriever(backend: Backend = "local", settings: Settings | None = None) -> Retriever:
    """
    Get the configured retriever.

    Raises:
        ConfigurationError: a credential or identifier the backend needs is missing
        ValueError: unknown backend name
    """
    if backend == "local":
        return get_local_retriever(settings)
    if backend == "managed":
        return get_managed_retriever(settings)
    raise ValueError(f"Unknown backend: {backend}")
