"""
OpenInference Auto-Instrumentation

Registers the OpenAI instrumentor so embedding, file and Responses API
calls show up as child spans without code changes.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_instrumented = False


def register_instrumentors() -> bool:
    """
    Register the OpenInference OpenAI instrumentor.

    Returns:
        True if the instrumentor is active, False otherwise
    """
    global _instrumented
    if _instrumented:
        return True

    try:
        from openinference.instrumentation.openai import OpenAIInstrumentor
    except ImportError:
        logger.debug("OpenAI instrumentor not available")
        return False

    try:
        OpenAIInstrumentor().instrument()
    except Exception as e:
        logger.warning(f"Failed to instrument OpenAI: {e}")
        return False

    logger.info("Registered instrumentors: openai")
    _instrumented = True
    return True


def uninstrument() -> None:
    """Remove the instrumentor (useful for testing)."""
    global _instrumented
    if not _instrumented:
        return

    from openinference.instrumentation.openai import OpenAIInstrumentor

    OpenAIInstrumentor().uninstrument()
    _instrumented = False
