"""
Error taxonomy for indexing and retrieval.

Every failure the library raises derives from SemanticSearchError so that
the CLI can catch one type and exit non-zero. Document-level problems are
NOT errors - the normalizer skips those posts and logs a note.

HIERARCHY:
----------
SemanticSearchError
├── ConfigurationError          missing credential / identifier (startup)
├── InvalidQueryError           empty or whitespace query
├── ContentSourceError          WordPress API returned an unusable page
├── EmbeddingGenerationError    provider failure or vector/document mismatch
│   └── EmbeddingModelMismatchError
├── RemoteBatchError            file batch ended failed/cancelled/expired
│   └── RemoteBatchTimeoutError
├── ResponseParseError          structured output was not JSON
└── BindingConfigurationError   server rejected inline vector store binding
"""

from __future__ import annotations

import json
from typing import Any


class SemanticSearchError(Exception):
    """Base class for all wp_semantic_search failures."""


class ConfigurationError(SemanticSearchError):
    """A required environment variable or identifier is missing."""

    def __init__(self, variable: str, hint: str | None = None):
        self.variable = variable
        message = f"Missing {variable}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class InvalidQueryError(SemanticSearchError, ValueError):
    """The query was empty after trimming."""

    def __init__(self, message: str = "Query must be a non-empty string"):
        super().__init__(message)


class ContentSourceError(SemanticSearchError):
    """The content API could not be read."""


class EmbeddingGenerationError(SemanticSearchError):
    """
    Embedding provider call failed or returned misaligned vectors.

    batch_index is the zero-based batch that failed, or None when the
    failure is not tied to a single batch (query embedding, final count check).
    """

    def __init__(self, message: str, batch_index: int | None = None):
        self.batch_index = batch_index
        if batch_index is not None:
            message = f"Batch {batch_index + 1}: {message}"
        super().__init__(message)


class EmbeddingModelMismatchError(EmbeddingGenerationError):
    """Query embedding does not come from the model that built the index."""


class RemoteBatchError(SemanticSearchError):
    """A vector store file batch did not complete."""

    def __init__(self, message: str, job: Any | None = None):
        self.job = job
        details = _job_details(job)
        if details:
            message = f"{message}. Details: {details}"
        super().__init__(message)


class RemoteBatchTimeoutError(RemoteBatchError):
    """The poll loop ran past its deadline before the batch was terminal."""


class ResponseParseError(SemanticSearchError):
    """Structured model output could not be decoded as a JSON object."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class BindingConfigurationError(SemanticSearchError):
    """The Responses API rejected inline vector store binding."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or (
                "This server rejects inline vector store binding. Set "
                "OPENAI_VECTOR_ASSISTANT_ID to an assistant that has file_search "
                "enabled and is bound to your vector store, then retry."
            )
        )


def _job_details(job: Any | None) -> str:
    if job is None:
        return ""
    raw = getattr(job, "raw", job)
    try:
        return json.dumps(raw, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(raw)
