"""
Core module - shared protocols, result types and errors.

USAGE:
------
from wp_semantic_search.core import Retriever, SearchResponse

class MyRetriever:
    '''Implements Retriever protocol.'''
    ...
"""

from wp_semantic_search.core.protocols import (
    # Protocols
    EmbeddingProvider,
    Retriever,
    # Data classes
    SearchResult,
    SearchResponse,
)
from wp_semantic_search.core.errors import (
    SemanticSearchError,
    ConfigurationError,
    InvalidQueryError,
    ContentSourceError,
    EmbeddingGenerationError,
    EmbeddingModelMismatchError,
    RemoteBatchError,
    RemoteBatchTimeoutError,
    ResponseParseError,
    BindingConfigurationError,
)

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "Retriever",
    # Data classes
    "SearchResult",
    "SearchResponse",
    # Errors
    "SemanticSearchError",
    "ConfigurationError",
    "InvalidQueryError",
    "ContentSourceError",
    "EmbeddingGenerationError",
    "EmbeddingModelMismatchError",
    "RemoteBatchError",
    "RemoteBatchTimeoutError",
    "ResponseParseError",
    "BindingConfigurationError",
]
