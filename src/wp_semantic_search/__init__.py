"""Semantic search over WordPress posts with local or managed vector retrieval."""

__version__ = "1.0.0"
