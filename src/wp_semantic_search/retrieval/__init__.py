"""
Retrieval module - local embedding index and result contract.

This module provides:
- Document: the normalized post model
- IndexSnapshot / FileSnapshotStore / InMemorySnapshotStore: persistence
- EmbeddingIndexBuilder: batched embedding + atomic snapshot write
- cosine_similarity / rank: scoring primitives
- LocalRetriever: thresholded top-k search over the snapshot
- reconcile_output: managed-output parsing and score backfill
- get_retriever(): factory over both backends

ARCHITECTURE:
-------------
1. Protocol defines the contract (Retriever in core.protocols)
2. Two implementations (LocalRetriever here, ManagedRetriever in managed)
3. Factory function for instantiation
4. Test doubles (InMemorySnapshotStore, MockEmbeddings) for fast unit tests
"""

from wp_semantic_search.retrieval.document import Document
from wp_semantic_search.retrieval.snapshot import (
    IndexSnapshot,
    SnapshotStore,
    FileSnapshotStore,
    InMemorySnapshotStore,
    get_snapshot_store,
)
from wp_semantic_search.retrieval.builder import EmbeddingIndexBuilder
from wp_semantic_search.retrieval.similarity import cosine_similarity, rank
from wp_semantic_search.retrieval.local import LocalRetriever, EMPTY_INDEX_MESSAGE
from wp_semantic_search.retrieval.reconcile import (
    ManagedResultItem,
    parse_managed_payload,
    reconcile,
    reconcile_output,
    rank_decay_score,
)
from wp_semantic_search.retrieval.formatting import format_search_results
from wp_semantic_search.retrieval.factory import get_retriever

__all__ = [
    # Document
    "Document",
    # Snapshot
    "IndexSnapshot",
    "SnapshotStore",
    "FileSnapshotStore",
    "InMemorySnapshotStore",
    "get_snapshot_store",
    # Build
    "EmbeddingIndexBuilder",
    # Search
    "cosine_similarity",
    "rank",
    "LocalRetriever",
    "EMPTY_INDEX_MESSAGE",
    # Reconcile
    "ManagedResultItem",
    "parse_managed_payload",
    "reconcile",
    "reconcile_output",
    "rank_decay_score",
    # Output
    "format_search_results",
    # Factory
    "get_retriever",
]
