"""
MCP stdio server exposing both search backends to assistants.

TOOLS:
------
    semantic_search(query, top_k=10)  local index, formatted text
    vs_search(query, top_k=5)         managed vector store, JSON text

RESOURCES:
----------
    wp-search://{query}   local search, 10 results
    vs-search://{query}   managed search, 5 results
    health://status       configuration and index status

Handlers never raise into the transport. Library errors come back as
"Search error: ..." text, and a resource URI with an empty query returns
usage guidance instead of an error.

Run with `wp-search serve`; logging must stay on stderr because stdout
carries the protocol.
"""

from __future__ import annotations

import json
import logging
from urllib.parse import unquote

import openai
from mcp.server.fastmcp import FastMCP

from wp_semantic_search.config import health_report
from wp_semantic_search.core.errors import SemanticSearchError

logger = logging.getLogger(__name__)

SERVER_NAME = "wordpress-semantic-search"

LOCAL_RESOURCE_TOP_K = 10
MANAGED_RESOURCE_TOP_K = 5

LOCAL_ERROR_HINT = (
    "Please ensure:\n"
    "1. Embeddings are generated (run: wp-search build-index)\n"
    "2. Environment variables are set correctly\n"
    "3. OpenAI API key is valid"
)
MANAGED_ERROR_HINT = (
    "Ensure: OPENAI_API_KEY, OPENAI_VECTOR_STORE_ID set, "
    "and store has files (run: wp-search build-index-vs)"
)

_SEARCH_ERRORS = (SemanticSearchError, openai.OpenAIError, OSError)


def decode_query(value: str | None) -> str:
    """Percent-decode a URI path segment; undecodable bytes are replaced."""
    return unquote(str(value or ""))


def empty_query_guidance(scheme: str) -> str:
    return f"Please provide a non-empty query. Example: {scheme}://wordpress caching"


# ---------------------------------------------------------------------------
# HANDLERS
# ---------------------------------------------------------------------------


def local_search_text(query: str, top_k: int = 10) -> str:
    """Run a local search and render it for humans."""
    from wp_semantic_search.retrieval import format_search_results, get_retriever

    response = get_retriever("local").search(query, top_k=top_k)
    return format_search_results(response)


def managed_search_text(query: str, top_k: int = 5) -> str:
    """Run a managed search and return the response as JSON text."""
    from wp_semantic_search.retrieval import get_retriever

    response = get_retriever("managed").search(query, top_k=top_k)
    return json.dumps(response.to_dict(), ensure_ascii=False, indent=2)


def semantic_search(query: str, top_k: int = 10) -> str:
    try:
        return local_search_text(query, top_k)
    except _SEARCH_ERRORS as e:
        logger.error(f"semantic_search failed: {e}")
        return f"Search error: {e}"


def vs_search(query: str, top_k: int = 5) -> str:
    try:
        return managed_search_text(query, top_k)
    except _SEARCH_ERRORS as e:
        logger.error(f"vs_search failed: {e}")
        return f"Vector Store search error: {e}"


def wp_search_resource(query: str) -> str:
    decoded = decode_query(query)
    if not decoded.strip():
        return empty_query_guidance("wp-search")

    logger.info(f"Resource search for: {decoded}")
    try:
        return local_search_text(decoded, LOCAL_RESOURCE_TOP_K)
    except _SEARCH_ERRORS as e:
        logger.error(f"wp-search resource failed: {e}")
        return f"Search error: {e}\n\n{LOCAL_ERROR_HINT}"


def vs_search_resource(query: str) -> str:
    decoded = decode_query(query)
    if not decoded.strip():
        return empty_query_guidance("vs-search")

    try:
        return managed_search_text(decoded, MANAGED_RESOURCE_TOP_K)
    except _SEARCH_ERRORS as e:
        logger.error(f"vs-search resource failed: {e}")
        return f"Vector Store search error: {e}\n\n{MANAGED_ERROR_HINT}"


def health_status() -> str:
    text, _ = health_report()
    return (
        f"{text}\n\n"
        "To run indexing: wp-search build-index\n"
        "To test search: Use wp-search://your-query"
    )


# ---------------------------------------------------------------------------
# SERVER
# ---------------------------------------------------------------------------


def build_server() -> FastMCP:
    """Create the MCP server with every tool and resource registered."""
    server = FastMCP(SERVER_NAME)

    server.tool(
        name="semantic_search",
        description="Search WordPress posts using direct embeddings and cosine similarity",
    )(semantic_search)
    server.tool(
        name="vs_search",
        description="Search WordPress posts using OpenAI Vector Store (file_search)",
    )(vs_search)

    server.resource(
        "wp-search://{query}",
        name="wp-search",
        description="Semantic search WordPress posts using direct embeddings and cosine similarity",
    )(wp_search_resource)
    server.resource(
        "vs-search://{query}",
        name="vs-search",
        description="Search WordPress posts via OpenAI Vector Store (file_search)",
    )(vs_search_resource)
    server.resource(
        "health://status",
        name="health",
        description="Check system configuration and embeddings status",
    )(health_status)

    return server
