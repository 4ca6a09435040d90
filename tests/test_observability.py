"""
Unit Tests for Observability Module

Tests the Phoenix/OpenTelemetry integration with focus on:
1. Graceful degradation (NoOpTracer when disabled)
2. Configuration loading from environment
3. Span attribute helpers

PATTERNS:
---------
1. Tests work WITHOUT Phoenix installed (graceful degradation)
2. Environment variable handling tested with patch.dict
3. Query text only lands on spans when explicitly enabled
"""

from unittest.mock import MagicMock, patch

import pytest

from wp_semantic_search.observability import init_phoenix, shutdown_phoenix
from wp_semantic_search.observability.config import (
    PhoenixConfig,
    get_config,
    reset_config,
)
from wp_semantic_search.observability.tracer import (
    NoOpTracer,
    NoOpSpan,
    OTelTracer,
    get_tracer,
    reset_tracer,
)
from wp_semantic_search.observability.attributes import (
    GEN_AI_REQUEST_MODEL,
    INDEX_BATCH_INDEX,
    INDEX_BATCH_SIZE,
    SEARCH_BACKEND,
    SEARCH_MIN_SIMILARITY,
    SEARCH_QUERY,
    SEARCH_TOP_K,
    batch_attributes,
    search_attributes,
)


@pytest.fixture(autouse=True)
def reset_observability():
    reset_config()
    reset_tracer()
    yield
    reset_config()
    reset_tracer()


# ---------------------------------------------------------------------------
# CONFIG TESTS
# ---------------------------------------------------------------------------


class TestPhoenixConfig:
    """Test configuration loading."""

    def test_config_defaults(self):
        """Config should have sensible defaults when env vars not set."""
        with patch.dict("os.environ", {}, clear=True):
            config = PhoenixConfig.from_env()

            assert config.enabled is False
            assert config.project_name == "wp-semantic-search"
            assert config.collector_endpoint is None
            # Search queries are user input; never exported unless asked
            assert config.capture_queries is False

    @pytest.mark.parametrize("value", ["true", "1", "yes", "TRUE"])
    def test_config_enabled_values(self, value):
        with patch.dict("os.environ", {"PHOENIX_ENABLED": value}):
            assert PhoenixConfig.from_env().enabled is True

    @pytest.mark.parametrize("value", ["false", "0", "no"])
    def test_config_disabled_values(self, value):
        with patch.dict("os.environ", {"PHOENIX_ENABLED": value}):
            assert PhoenixConfig.from_env().enabled is False

    def test_config_collector_endpoint(self):
        """Config should read collector endpoint from env."""
        with patch.dict(
            "os.environ",
            {"PHOENIX_COLLECTOR_ENDPOINT": "https://phoenix.example.com/v1/traces"},
        ):
            config = PhoenixConfig.from_env()
            assert config.collector_endpoint == "https://phoenix.example.com/v1/traces"

    def test_get_config_singleton(self):
        assert get_config() is get_config()


# ---------------------------------------------------------------------------
# NOOP TRACER TESTS
# ---------------------------------------------------------------------------


class TestNoOpTracer:
    """Test NoOpTracer for graceful degradation."""

    def test_noop_span_accepts_everything(self):
        tracer = NoOpTracer()

        with tracer.start_span("search.local", attributes={"search.top_k": 5}) as span:
            assert isinstance(span, NoOpSpan)
            span.set_attribute("search.result_count", 3)
            span.set_status("ok")
            span.record_exception(ValueError("test error"))

    def test_exceptions_propagate(self):
        with pytest.raises(ValueError):
            with NoOpTracer().start_span("index.build"):
                raise ValueError("boom")


# ---------------------------------------------------------------------------
# OTEL ADAPTER TESTS
# ---------------------------------------------------------------------------


class TestOTelTracer:
    """The adapter records errors on the span and re-raises."""

    def test_exception_marks_span(self):
        pytest.importorskip("opentelemetry")
        raw_span = MagicMock()
        raw_tracer = MagicMock()
        raw_tracer.start_as_current_span.return_value.__enter__.return_value = raw_span

        with pytest.raises(RuntimeError):
            with OTelTracer(raw_tracer).start_span("search.managed"):
                raise RuntimeError("upstream down")

        raw_span.record_exception.assert_called_once()
        raw_span.set_status.assert_called_once()


# ---------------------------------------------------------------------------
# GET_TRACER FACTORY TESTS
# ---------------------------------------------------------------------------


class TestGetTracer:
    """Test the get_tracer factory function."""

    def test_get_tracer_returns_noop_when_disabled(self):
        with patch.dict("os.environ", {"PHOENIX_ENABLED": "false"}):
            assert isinstance(get_tracer(), NoOpTracer)

    def test_get_tracer_singleton(self):
        with patch.dict("os.environ", {"PHOENIX_ENABLED": "false"}):
            assert get_tracer() is get_tracer()

    def test_get_tracer_when_enabled_without_provider(self):
        """Enabled but not initialized still yields a usable tracer."""
        with patch.dict("os.environ", {"PHOENIX_ENABLED": "true"}):
            tracer = get_tracer()
            assert callable(tracer.start_span)


class TestInitPhoenix:

    def test_disabled_returns_false(self):
        assert init_phoenix(PhoenixConfig(enabled=False)) is False

    def test_shutdown_without_init_is_safe(self):
        shutdown_phoenix()


# ---------------------------------------------------------------------------
# ATTRIBUTE HELPER TESTS
# ---------------------------------------------------------------------------


class TestAttributeHelpers:
    """Test attribute helper functions."""

    def test_search_attributes_omit_query_by_default(self):
        with patch.dict("os.environ", {"PHOENIX_CAPTURE_QUERIES": "false"}):
            attrs = search_attributes("local", "secret query", 5, 0.3)

        assert attrs[SEARCH_BACKEND] == "local"
        assert attrs[SEARCH_TOP_K] == 5
        assert attrs[SEARCH_MIN_SIMILARITY] == 0.3
        assert SEARCH_QUERY not in attrs

    def test_search_attributes_capture_query_when_enabled(self):
        with patch.dict("os.environ", {"PHOENIX_CAPTURE_QUERIES": "true"}):
            attrs = search_attributes("managed", "caching", 5)

        assert attrs[SEARCH_QUERY] == "caching"
        assert SEARCH_MIN_SIMILARITY not in attrs

    def test_batch_attributes(self):
        attrs = batch_attributes(2, 100, "text-embedding-3-small")

        assert attrs[INDEX_BATCH_INDEX] == 2
        assert attrs[INDEX_BATCH_SIZE] == 100
        assert attrs[GEN_AI_REQUEST_MODEL] == "text-embedding-3-small"
