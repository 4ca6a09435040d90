"""
Remote file batch state machine and poll loop.

A vector store file batch moves through

    queued ──► in_progress ──► completed
       │            │      ├──► failed
       └────────────┴──────┼──► cancelled
                           └──► expired

Transitions are driven by the provider and observed by polling. poll_batch()
is a bounded loop with an explicit deadline; the status source, clock and
sleep are injected so tests can drive it without a network.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from wp_semantic_search.core.errors import RemoteBatchError, RemoteBatchTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 1.5
DEFAULT_POLL_TIMEOUT_S = 15 * 60


class BatchStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition(self, to: "BatchStatus") -> bool:
        """Whether observing `to` after `self` is a legal move."""
        return to is self or to in _TRANSITIONS[self]

    @classmethod
    def parse(cls, value: Any) -> "BatchStatus":
        try:
            return cls(str(value))
        except ValueError:
            raise RemoteBatchError(f"Unknown batch status: {value!r}") from None


TERMINAL_STATUSES = frozenset(
    {BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.CANCELLED, BatchStatus.EXPIRED}
)

_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.QUEUED: frozenset({BatchStatus.IN_PROGRESS}) | TERMINAL_STATUSES,
    BatchStatus.IN_PROGRESS: TERMINAL_STATUSES,
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.FAILED: frozenset(),
    BatchStatus.CANCELLED: frozenset(),
    BatchStatus.EXPIRED: frozenset(),
}


@dataclass
class FileCounts:
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    total: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FileCounts":
        data = data or {}
        return cls(**{name: int(data.get(name) or 0) for name in cls.__dataclass_fields__})


@dataclass
class RemoteBatchJob:
    """Snapshot of a file batch as last reported by the provider."""
    id: str
    status: BatchStatus
    file_counts: FileCounts = field(default_factory=FileCounts)
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, obj: Any) -> "RemoteBatchJob":
        """Build from an SDK model or a plain dict."""
        raw = obj.model_dump() if hasattr(obj, "model_dump") else dict(obj)
        return cls(
            id=str(raw["id"]),
            status=BatchStatus.parse(raw.get("status")),
            file_counts=FileCounts.from_dict(raw.get("file_counts")),
            raw=raw,
        )


def poll_batch(
    fetch_status: Callable[[str], RemoteBatchJob],
    job: RemoteBatchJob,
    interval_s: float = DEFAULT_POLL_INTERVAL_S,
    timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> RemoteBatchJob:
    """
    Poll until the batch is terminal or the deadline passes.

    Returns:
        The completed job.

    Raises:
        RemoteBatchError: the batch ended failed, cancelled or expired, or
            reported an illegal transition.
        RemoteBatchTimeoutError: the deadline passed first.
    """
    deadline = clock() + timeout_s
    previous = job

    while True:
        current = fetch_status(job.id)
        if not previous.status.can_transition(current.status):
            raise RemoteBatchError(
                f"Batch {job.id} moved from {previous.status.value} to {current.status.value}",
                job=current,
            )

        counts = current.file_counts
        logger.info(
            f"Batch status: {current.status.value} "
            f"(completed: {counts.completed} / total: {counts.total})"
        )

        if current.status is BatchStatus.COMPLETED:
            return current
        if current.status.is_terminal:
            raise RemoteBatchError(f"Batch {current.status.value}", job=current)
        if clock() >= deadline:
            raise RemoteBatchTimeoutError(
                f"Timed out waiting for batch {job.id} after {timeout_s:.0f}s "
                f"(last status: {current.status.value})",
                job=current,
            )

        previous = current
        sleep(interval_s)
