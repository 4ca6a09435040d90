"""
Observability Module - Phoenix + OpenTelemetry Integration

Traces index builds and searches with Arize Phoenix, plus OpenInference
auto-instrumentation of the OpenAI client.

USAGE:
------
# At application startup:
from wp_semantic_search.observability import init_phoenix

init_phoenix()  # Starts local Phoenix UI if PHOENIX_ENABLED=true

# In code that needs tracing:
from wp_semantic_search.observability import get_tracer

with get_tracer().start_span("search.local", attributes={...}) as span:
    span.set_attribute("search.result_count", 3)
"""

from __future__ import annotations

import logging

from wp_semantic_search.observability.config import (
    PhoenixConfig,
    get_config,
    reset_config,
)
from wp_semantic_search.observability.tracer import (
    TracerProtocol,
    SpanProtocol,
    NoOpTracer,
    NoOpSpan,
    get_tracer,
    reset_tracer,
)
from wp_semantic_search.observability.attributes import (
    search_attributes,
    batch_attributes,
)

logger = logging.getLogger(__name__)

_phoenix_initialized = False


def init_phoenix(config: PhoenixConfig | None = None) -> bool:
    """
    Initialize Phoenix observability.

    Call once at startup. Sets up the OpenTelemetry tracer provider and
    registers the OpenAI instrumentor.

    Returns:
        True if Phoenix was initialized, False if disabled or unavailable
    """
    global _phoenix_initialized
    if _phoenix_initialized:
        return True

    config = config or get_config()

    if not config.enabled:
        logger.debug("Phoenix observability disabled")
        return False

    try:
        import phoenix as px
        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    except ImportError as e:
        logger.warning(f"Phoenix not installed, observability disabled: {e}")
        return False

    if config.collector_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.collector_endpoint)
        logger.info(f"Phoenix connecting to remote: {config.collector_endpoint}")
    else:
        session = px.launch_app()
        exporter = OTLPSpanExporter(endpoint=f"{session.url.rstrip('/')}/v1/traces")
        logger.info(f"Phoenix UI available at: {session.url}")

    provider = TracerProvider()
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    from wp_semantic_search.observability.instrumentation import register_instrumentors

    register_instrumentors()
    reset_tracer()

    _phoenix_initialized = True
    return True


def shutdown_phoenix() -> None:
    """Flush spans and reset module state."""
    global _phoenix_initialized

    if not _phoenix_initialized:
        return

    from opentelemetry import trace

    from wp_semantic_search.observability.instrumentation import uninstrument

    uninstrument()
    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()

    reset_tracer()
    reset_config()
    _phoenix_initialized = False


__all__ = [
    "init_phoenix",
    "shutdown_phoenix",
    "PhoenixConfig",
    "get_config",
    "reset_config",
    "TracerProtocol",
    "SpanProtocol",
    "NoOpTracer",
    "NoOpSpan",
    "get_tracer",
    "reset_tracer",
    "search_attributes",
    "batch_attributes",
]
