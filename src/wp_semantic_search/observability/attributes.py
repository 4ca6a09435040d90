"""
Span attribute keys.

GenAI keys follow the OpenTelemetry GenAI conventions; index.* and
search.* are local namespaces.

Reference: https://opentelemetry.io/docs/specs/semconv/gen-ai/
"""

# ---------------------------------------------------------------------------
# GENAI NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

GEN_AI_SYSTEM = "gen_ai.system"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"
GEN_AI_USAGE_INPUT_TOKENS = "gen_ai.usage.input_tokens"
GEN_AI_USAGE_OUTPUT_TOKENS = "gen_ai.usage.output_tokens"


# ---------------------------------------------------------------------------
# INDEX NAMESPACE
# ---------------------------------------------------------------------------

INDEX_DOCUMENT_COUNT = "index.document_count"
INDEX_BATCH_INDEX = "index.batch.index"
INDEX_BATCH_SIZE = "index.batch.size"
INDEX_BATCH_RETRIES = "index.batch.retries"
INDEX_REMOTE_JOB_ID = "index.remote.job_id"
INDEX_REMOTE_JOB_STATUS = "index.remote.job_status"
INDEX_REMOTE_FILE_COUNT = "index.remote.file_count"


# ---------------------------------------------------------------------------
# SEARCH NAMESPACE
# ---------------------------------------------------------------------------

SEARCH_BACKEND = "search.backend"  # "local", "managed"
SEARCH_QUERY = "search.query"  # only when PHOENIX_CAPTURE_QUERIES=true
SEARCH_TOP_K = "search.top_k"
SEARCH_MIN_SIMILARITY = "search.min_similarity"
SEARCH_RESULT_COUNT = "search.result_count"
SEARCH_BINDING_MODE = "search.binding_mode"  # "agent", "inline"
SEARCH_PARSE_FAILED = "search.parse_failed"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def search_attributes(
    backend: str,
    query: str,
    top_k: int,
    min_similarity: float | None = None,
) -> dict:
    """Create attributes dict for a search span."""
    from wp_semantic_search.observability.config import get_config

    attrs: dict = {
        SEARCH_BACKEND: backend,
        SEARCH_TOP_K: top_k,
    }
    if min_similarity is not None:
        attrs[SEARCH_MIN_SIMILARITY] = min_similarity
    if get_config().capture_queries:
        attrs[SEARCH_QUERY] = query
    return attrs


def batch_attributes(batch_index: int, batch_size: int, model: str) -> dict:
    """Create attributes dict for one embedding batch span."""
    return {
        GEN_AI_SYSTEM: "openai",
        GEN_AI_REQUEST_MODEL: model,
        INDEX_BATCH_INDEX: batch_index,
        INDEX_BATCH_SIZE: batch_size,
    }
