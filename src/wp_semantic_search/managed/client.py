"""
Managed retriever - OpenAI Responses API with file_search over a vector store.

BINDING MODES (static configuration, never a runtime fallback):
---------------------------------------------------------------
AgentBinding   OPENAI_VECTOR_ASSISTANT_ID is set: the call names an
               assistant that already has file_search bound to the store.
InlineBinding  otherwise: the call attaches a file_search tool with the
               vector store id and names a model directly.

Some deployments reject the inline fields with "Unknown parameter"; that is
reported as a BindingConfigurationError telling the operator to configure
an assistant instead.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

import openai

from wp_semantic_search.core.errors import BindingConfigurationError, ConfigurationError
from wp_semantic_search.core.protocols import SearchResponse
from wp_semantic_search.managed.prompts import build_input
from wp_semantic_search.observability import get_tracer, search_attributes
from wp_semantic_search.observability.attributes import (
    GEN_AI_USAGE_INPUT_TOKENS,
    GEN_AI_USAGE_OUTPUT_TOKENS,
    SEARCH_BINDING_MODE,
    SEARCH_PARSE_FAILED,
    SEARCH_RESULT_COUNT,
)
from wp_semantic_search.retrieval.local import validate_query
from wp_semantic_search.retrieval.reconcile import reconcile_output

if TYPE_CHECKING:
    from openai import OpenAI

    from wp_semantic_search.config import Settings

logger = logging.getLogger(__name__)

BACKEND = "managed"
MAX_OUTPUT_TOKENS = 800
JSON_OUTPUT_FORMAT = {"format": {"type": "json_object"}}

_UNKNOWN_PARAMETER_RE = re.compile(r"unknown parameter", re.IGNORECASE)


# ---------------------------------------------------------------------------
# BINDINGS
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AgentBinding:
    """Pre-registered assistant already bound to the vector store."""
    agent_id: str
    mode: str = "agent"

    def request_kwargs(self) -> dict[str, Any]:
        return {"extra_body": {"assistant_id": self.agent_id}}


@dataclass(frozen=True)
class InlineBinding:
    """file_search tool attached to the call itself."""
    vector_store_id: str
    model: str
    mode: str = "inline"

    def request_kwargs(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "tools": [{"type": "file_search", "vector_store_ids": [self.vector_store_id]}],
        }


Binding = Union[AgentBinding, InlineBinding]


def binding_from_settings(settings: Settings) -> Binding:
    """Pick the binding mode from configuration."""
    vector_store_id = settings.require_vector_store()
    if settings.vector_assistant_id:
        return AgentBinding(agent_id=settings.vector_assistant_id)
    return InlineBinding(vector_store_id=vector_store_id, model=settings.vector_search_model)


def _usage_dict(response: Any) -> dict[str, Any] | None:
    usage = getattr(response, "usage", None)
    if usage is None:
        return None
    if hasattr(usage, "model_dump"):
        return usage.model_dump()
    return dict(usage)


# ---------------------------------------------------------------------------
# RETRIEVER
# ---------------------------------------------------------------------------


class ManagedRetriever:
    """
    Retriever backed by an OpenAI vector store.

    Implements the Retriever protocol. Results are capped and score-filled by
    the reconciler; there is no numeric similarity threshold on this path.
    """

    def __init__(
        self,
        client: OpenAI,
        binding: Binding,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
    ):
        if binding is None:
            raise ConfigurationError("OPENAI_VECTOR_STORE_ID")
        self._client = client
        self.binding = binding
        self.max_output_tokens = max_output_tokens

    def _create_response(self, query: str, top_k: int) -> Any:
        try:
            return self._client.responses.create(
                input=build_input(query, top_k),
                text=JSON_OUTPUT_FORMAT,
                max_output_tokens=self.max_output_tokens,
                **self.binding.request_kwargs(),
            )
        except openai.APIError as e:
            if isinstance(self.binding, InlineBinding) and _UNKNOWN_PARAMETER_RE.search(str(e)):
                raise BindingConfigurationError() from e
            raise

    def search(self, query: str, top_k: int = 5) -> SearchResponse:
        """Run one managed search and reconcile the model's JSON output."""
        start = time.perf_counter()
        query_text = validate_query(query)

        attrs = search_attributes(BACKEND, query_text, top_k)
        attrs[SEARCH_BINDING_MODE] = self.binding.mode
        with get_tracer().start_span("search.managed", attributes=attrs) as span:
            response = self._create_response(query_text, top_k)
            reconciled = reconcile_output(getattr(response, "output_text", "") or "", top_k)

            usage = _usage_dict(response)
            if usage:
                logger.info(f"Managed search usage: {usage}")
                if usage.get("input_tokens") is not None:
                    span.set_attribute(GEN_AI_USAGE_INPUT_TOKENS, usage["input_tokens"])
                if usage.get("output_tokens") is not None:
                    span.set_attribute(GEN_AI_USAGE_OUTPUT_TOKENS, usage["output_tokens"])

            span.set_attribute(SEARCH_RESULT_COUNT, len(reconciled.results))
            span.set_attribute(SEARCH_PARSE_FAILED, reconciled.raw_text is not None)

        return SearchResponse(
            query=query,
            backend=BACKEND,
            results=reconciled.results,
            search_time_ms=round((time.perf_counter() - start) * 1000, 2),
            raw_text=reconciled.raw_text,
            usage=usage,
        )
