"""Thread-safe run statistics and per-document log lines."""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List


class DocOutcome(str, Enum):
    """What happened to one document during the run."""
    NEW = "new"
    CACHED = "cached"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DocLog:
    """One report line.

    Attributes:
        path: Output path of the document relative to the output root
        outcome: new (written), cached (unchanged) or skipped (failed)
        new_images: Images downloaded or uploaded for this document
        cached_images: Images resolved from a cache layer
        reason: Failure reason for skipped documents
    """
    path: str
    outcome: DocOutcome
    new_images: int = 0
    cached_images: int = 0
    reason: str = ""


@dataclass(frozen=True)
class StatsSnapshot:
    """Consistent copy of the running totals."""
    total_docs: int
    new_docs: int
    total_images: int
    new_images: int
    failed_docs: int
    elapsed: float


class StatsCollector:
    """Aggregates counts from concurrent document tasks under one lock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._clock = clock
        self._started = clock()
        self._total_docs = 0
        self._new_docs = 0
        self._total_images = 0
        self._new_images = 0
        self._logs: List[DocLog] = []

    def set_total_docs(self, count: int) -> None:
        with self._lock:
            self._total_docs = count

    def add_doc_new(self) -> None:
        with self._lock:
            self._new_docs += 1

    def add_images(self, encountered: int, new: int) -> None:
        with self._lock:
            self._total_images += encountered
            self._new_images += new

    def add_log(self, log: DocLog) -> None:
        with self._lock:
            self._logs.append(log)

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                total_docs=self._total_docs,
                new_docs=self._new_docs,
                total_images=self._total_images,
                new_images=self._new_images,
                failed_docs=sum(1 for log in self._logs if log.outcome == DocOutcome.SKIPPED),
                elapsed=self._clock() - self._started,
            )

    def sorted_logs(self) -> List[DocLog]:
        """Per-document lines sorted by path for the final report."""
        with self._lock:
            return sorted(self._logs, key=lambda log: log.path)
