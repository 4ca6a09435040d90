"""
Result reconciler - managed-search output -> list[SearchResult].

The managed path returns whatever JSON the model wrote. This module turns
it into the same SearchResult contract the local path produces.

PARSE STEP (one place, one rule):
---------------------------------
1. Decode output_text as a JSON object. Failure is NOT fatal: the result
   is an empty list that carries the raw text for diagnosis.
2. Field precedence: `results` if it is a non-empty list, otherwise the
   legacy `items` if it is a non-empty list, otherwise nothing.

RECONCILE STEP:
---------------
1. Drop entries that are not JSON objects, then cap to top_k
2. Backfill missing/non-numeric/non-finite scores by linear rank decay:
   1.0 for a single result, else round(1 - rank / (n - 1), 6)
3. Backfill original_rank as the 1-based position

No deduplication happens here; the instruction prompt asks the model to
consolidate duplicate links.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from wp_semantic_search.core.errors import ResponseParseError
from wp_semantic_search.core.protocols import SearchResult

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("results", "items")


# ---------------------------------------------------------------------------
# ITEM SCHEMA
# ---------------------------------------------------------------------------


class ManagedResultItem(BaseModel):
    """
    One entry as written by the model.

    Every field is optional and coerced leniently: a bad score becomes None
    (and is backfilled later) rather than failing validation.
    """

    model_config = ConfigDict(extra="allow")

    title: str = ""
    link: str = ""
    snippet: str = ""
    source: str | None = None
    score: float | None = None
    original_rank: int | None = None

    @field_validator("title", "link", "snippet", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("source", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator("score", mode="before")
    @classmethod
    def _finite_number(cls, value: Any) -> float | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        try:
            value = float(value)
        except OverflowError:
            return None
        if not math.isfinite(value):
            return None
        return value

    @field_validator("original_rank", mode="before")
    @classmethod
    def _positive_int(cls, value: Any) -> int | None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            return None
        return value


# ---------------------------------------------------------------------------
# PARSE
# ---------------------------------------------------------------------------


@dataclass
class ManagedPayload:
    """Decoded model output. raw_text is set only when decoding failed."""
    items: list[Any] = field(default_factory=list)
    raw_text: str | None = None


def decode_output(text: str) -> dict[str, Any]:
    """Decode text as a JSON object or raise ResponseParseError."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ResponseParseError(f"Response is not valid JSON: {e}", raw_text=text) from e
    if not isinstance(data, dict):
        raise ResponseParseError("Response JSON is not an object", raw_text=text)
    return data


def select_items(data: dict[str, Any]) -> list[Any]:
    """Apply the results-then-items precedence rule."""
    for name in RESULT_FIELDS:
        value = data.get(name)
        if isinstance(value, list) and value:
            return value
    return []


def parse_managed_payload(text: str | None) -> ManagedPayload:
    """Decode model output; a parse failure degrades to an empty payload."""
    text = text or ""
    try:
        data = decode_output(text)
    except ResponseParseError as e:
        logger.warning(f"Could not parse managed search output: {e}")
        return ManagedPayload(items=[], raw_text=e.raw_text)
    return ManagedPayload(items=select_items(data))


# ---------------------------------------------------------------------------
# RECONCILE
# ---------------------------------------------------------------------------


def rank_decay_score(rank: int, n: int) -> float:
    """Linear score for 0-based rank in an n-item list."""
    if n <= 1:
        return 1.0
    return round(1 - rank / (n - 1), 6)


def reconcile(items: list[Any], top_k: int) -> list[SearchResult]:
    """Cap, backfill scores and ranks, and convert to SearchResult."""
    parsed = [ManagedResultItem.model_validate(item) for item in items if isinstance(item, dict)]
    capped = parsed[:max(top_k, 0)]
    n = len(capped)

    results = []
    for position, item in enumerate(capped):
        score = item.score if item.score is not None else rank_decay_score(position, n)
        results.append(
            SearchResult(
                title=item.title,
                link=item.link,
                snippet=item.snippet,
                score=score,
                original_rank=item.original_rank or position + 1,
                source=item.source,
            )
        )
    return results


@dataclass
class ReconciledResults:
    """Reconciled managed output, JSON-ready via to_dict()."""
    results: list[SearchResult]
    raw_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"results": [r.to_dict() for r in self.results]}
        if self.raw_text is not None:
            data["raw_text"] = self.raw_text
        return data


def reconcile_output(text: str | None, top_k: int) -> ReconciledResults:
    """Parse and reconcile in one call."""
    payload = parse_managed_payload(text)
    return ReconciledResults(results=reconcile(payload.items, top_k), raw_text=payload.raw_text)
