"""
Cosine similarity and threshold ranking.

Pure functions, no I/O - the local retriever composes them with the
snapshot and the embedding provider.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """
    Cosine of the angle between a and b.

    A zero-norm vector scores 0.0. Vectors of different length are compared
    over their common prefix.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    n = min(a.shape[0], b.shape[0])
    a, b = a[:n], b[:n]

    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator == 0:
        return 0.0
    return float(np.dot(a, b) / denominator)


def rank(
    query_vector: Sequence[float] | np.ndarray,
    embeddings: Sequence[Sequence[float] | np.ndarray],
    min_similarity: float,
    top_k: int,
) -> list[tuple[int, float]]:
    """
    Score every embedding against the query and keep the best top_k.

    Returns (corpus_index, score) pairs with score >= min_similarity, sorted
    by descending score. Python's sort is stable, so equal scores keep
    corpus order.
    """
    if top_k <= 0:
        return []

    scored = [
        (index, cosine_similarity(query_vector, vector))
        for index, vector in enumerate(embeddings)
    ]
    kept = [pair for pair in scored if pair[1] >= min_similarity]
    kept.sort(key=lambda pair: pair[1], reverse=True)
    return kept[:top_k]
