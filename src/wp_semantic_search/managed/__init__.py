"""
Managed module - OpenAI vector store as an alternative retrieval backend.

- batch: BatchStatus state machine + bounded poll loop
- builder: upload documents and wait for the file batch
- client: ManagedRetriever over the Responses API file_search tool
- cleanup: bulk deletion of uploaded artifacts
"""

from wp_semantic_search.managed.batch import (
    BatchStatus,
    FileCounts,
    RemoteBatchJob,
    TERMINAL_STATUSES,
    poll_batch,
)
from wp_semantic_search.managed.builder import ManagedBuildReport, ManagedIndexBuilder
from wp_semantic_search.managed.client import (
    AgentBinding,
    InlineBinding,
    ManagedRetriever,
    binding_from_settings,
)
from wp_semantic_search.managed.cleanup import CleanupReport, StorageCleaner

__all__ = [
    "BatchStatus",
    "FileCounts",
    "RemoteBatchJob",
    "TERMINAL_STATUSES",
    "poll_batch",
    "ManagedBuildReport",
    "ManagedIndexBuilder",
    "AgentBinding",
    "InlineBinding",
    "ManagedRetriever",
    "binding_from_settings",
    "CleanupReport",
    "StorageCleaner",
]
