"""
Runtime configuration loaded from environment variables.

Mirrors the observability config: a dataclass with a from_env() classmethod
plus a lazily-created module singleton. Nothing here talks to the network;
require_* helpers turn a missing value into a ConfigurationError so callers
fail at startup instead of mid-search.

Environment Variables:
    OPENAI_API_KEY: API key for embeddings, files and vector stores
    OPENAI_ORGANIZATION / OPENAI_PROJECT: optional routing headers
    OPENAI_EMBEDDING_MODEL: embedding model (default: text-embedding-3-small)
    OPENAI_TIMEOUT_S: per-request timeout in seconds (default: 60)
    MIN_SIMILARITY: local search cutoff (default: 0.30)
    EMBEDDINGS_FILE: snapshot path (default: data/embeddings.json)
    WORDPRESS_POSTS_URL: WP REST posts endpoint
    WORDPRESS_FALLBACK_LINK_BASE: site root used when a post has no link
    OPENAI_VECTOR_STORE_ID: managed vector store id
    OPENAI_VECTOR_ASSISTANT_ID: assistant bound to the vector store (optional)
    OPENAI_VECTOR_SEARCH_MODEL: model for inline binding (default: gpt-4o-mini)
    UPLOAD_DIR: scratch dir for managed uploads (default: data/tmp_uploads)
    LOG_LEVEL: logging level for the CLI (default: INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from wp_semantic_search.core.errors import ConfigurationError

if TYPE_CHECKING:
    from openai import OpenAI


DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_MIN_SIMILARITY = 0.30
DEFAULT_EMBEDDINGS_FILE = "data/embeddings.json"
DEFAULT_UPLOAD_DIR = "data/tmp_uploads"
DEFAULT_VECTOR_SEARCH_MODEL = "gpt-4o-mini"


def _get_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Settings:
    """Settings for indexing and both search backends."""

    openai_api_key: str | None = None
    openai_organization: str | None = None
    openai_project: str | None = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    request_timeout_s: float = 60.0
    min_similarity: float = DEFAULT_MIN_SIMILARITY
    embeddings_file: Path = Path(DEFAULT_EMBEDDINGS_FILE)
    wordpress_posts_url: str | None = None
    fallback_link_base: str | None = None
    vector_store_id: str | None = None
    vector_assistant_id: str | None = None
    vector_search_model: str = DEFAULT_VECTOR_SEARCH_MODEL
    upload_dir: Path = Path(DEFAULT_UPLOAD_DIR)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_organization=os.environ.get("OPENAI_ORGANIZATION") or None,
            openai_project=os.environ.get("OPENAI_PROJECT") or None,
            embedding_model=os.environ.get("OPENAI_EMBEDDING_MODEL") or DEFAULT_EMBEDDING_MODEL,
            request_timeout_s=_get_float(os.environ.get("OPENAI_TIMEOUT_S"), 60.0),
            # An unparseable or zero threshold falls back to the default
            min_similarity=_get_float(os.environ.get("MIN_SIMILARITY"), DEFAULT_MIN_SIMILARITY)
            or DEFAULT_MIN_SIMILARITY,
            embeddings_file=Path(os.environ.get("EMBEDDINGS_FILE") or DEFAULT_EMBEDDINGS_FILE),
            wordpress_posts_url=os.environ.get("WORDPRESS_POSTS_URL") or None,
            fallback_link_base=os.environ.get("WORDPRESS_FALLBACK_LINK_BASE") or None,
            vector_store_id=os.environ.get("OPENAI_VECTOR_STORE_ID") or None,
            vector_assistant_id=os.environ.get("OPENAI_VECTOR_ASSISTANT_ID") or None,
            vector_search_model=os.environ.get("OPENAI_VECTOR_SEARCH_MODEL")
            or DEFAULT_VECTOR_SEARCH_MODEL,
            upload_dir=Path(os.environ.get("UPLOAD_DIR") or DEFAULT_UPLOAD_DIR),
            log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
        )

    # -----------------------------------------------------------------------
    # REQUIREMENTS
    # -----------------------------------------------------------------------

    def require_openai(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY", "Set it in the environment or .env")
        return self.openai_api_key

    def require_vector_store(self) -> str:
        self.require_openai()
        if not self.vector_store_id:
            raise ConfigurationError(
                "OPENAI_VECTOR_STORE_ID", "Create a vector store and set its id in .env"
            )
        return self.vector_store_id

    def require_wordpress(self) -> str:
        if not self.wordpress_posts_url:
            raise ConfigurationError(
                "WORDPRESS_POSTS_URL",
                "Point it at the WP REST posts endpoint, e.g. https://example.com/wp-json/wp/v2/posts",
            )
        return self.wordpress_posts_url

    def make_openai_client(self) -> "OpenAI":
        """Build one OpenAI client shared by every call of a run."""
        from openai import OpenAI

        return OpenAI(
            api_key=self.require_openai(),
            organization=self.openai_organization,
            project=self.openai_project,
            timeout=self.request_timeout_s,
        )


# Global settings singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings (lazy-loaded from env)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None


# ---------------------------------------------------------------------------
# HEALTH
# ---------------------------------------------------------------------------


def health_report(settings: Settings | None = None) -> tuple[str, bool]:
    """Return the health check text and whether search can run locally."""
    settings = settings or get_settings()

    def mark(value) -> str:
        return "Set" if value else "Missing"

    index_ok = settings.embeddings_file.exists()
    checks = [
        f"OPENAI_API_KEY: {mark(settings.openai_api_key)}",
        f"OPENAI_EMBEDDING_MODEL: {settings.embedding_model}",
        f"WORDPRESS_POSTS_URL: {mark(settings.wordpress_posts_url)}",
        f"MIN_SIMILARITY: {settings.min_similarity}",
        f"OPENAI_VECTOR_STORE_ID: {mark(settings.vector_store_id)}",
        f"OPENAI_VECTOR_ASSISTANT_ID: {mark(settings.vector_assistant_id)}",
        f"Embeddings file: {'Found' if index_ok else 'Missing (run: wp-search build-index)'}",
    ]
    text = "WordPress Semantic Search - Health Check\n\n" + "\n".join(checks)
    return text, bool(settings.openai_api_key) and index_ok
