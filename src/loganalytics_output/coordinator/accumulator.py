from __future__ import annotations

import threading
from time import monotonic
from typing import Callable, Collection, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class BatchAccumulator(Generic[T]):
    """
    Per-key buffer of documents with count and age bookkeeping.

    ``add`` and ``drain`` share one lock, so a document lands either in the
    batch being drained or in the next one, never both and never neither.
    Safe to use from plain threads as well as from the event loop.

    Usage:
        acc = BatchAccumulator[dict](flush_items=50)
        if acc.add("ApacheAccessLog", doc) >= 50:
            batch = acc.drain("ApacheAccessLog")
    """

    def __init__(
        self,
        flush_items: Optional[int] = None,
        *,
        clock: Callable[[], float] = monotonic,
    ):
        if flush_items is not None and flush_items <= 0:
            raise ValueError("flush_items must be > 0")
        self._flush_items = flush_items
        self._clock = clock
        self._batches: Dict[str, List[T]] = {}
        self._opened_at: Dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def flush_items(self) -> Optional[int]:
        return self._flush_items

    # --------------------------- writes

    def add(self, key: str, document: T) -> int:
        """Append ``document`` to the batch for ``key``; returns the batch size."""
        with self._lock:
            batch = self._batches.setdefault(key, [])
            if not batch:
                self._opened_at[key] = self._clock()
            batch.append(document)
            return len(batch)

    def drain(self, key: str) -> List[T]:
        """Remove and return everything buffered for ``key``."""
        with self._lock:
            batch = self._batches.pop(key, None)
            self._opened_at.pop(key, None)
            return batch or []

    def drain_all(self) -> Dict[str, List[T]]:
        """Drain every non-empty key, in first-seen key order."""
        with self._lock:
            out = {k: b for k, b in self._batches.items() if b}
            self._batches.clear()
            self._opened_at.clear()
            return out

    # --------------------------- flush decisions

    def should_flush(self, key: str) -> bool:
        if self._flush_items is None:
            return False
        with self._lock:
            return len(self._batches.get(key, ())) >= self._flush_items

    def due_keys(self, max_age: float, exclude: Collection[str] = ()) -> List[str]:
        """Keys whose open batch is at least ``max_age`` seconds old."""
        now = self._clock()
        with self._lock:
            return [
                k for k, t0 in self._opened_at.items() if now - t0 >= max_age and k not in exclude
            ]

    def seconds_until_due(self, max_age: float, exclude: Collection[str] = ()) -> Optional[float]:
        """Seconds until the oldest open batch reaches ``max_age``; None if empty.

        Keys in ``exclude`` are left out of both methods; the scheduler passes
        the keys it is already flushing.
        """
        with self._lock:
            opened = [t0 for k, t0 in self._opened_at.items() if k not in exclude]
            if not opened:
                return None
            oldest = min(opened)
        return max(0.0, oldest + max_age - self._clock())

    # --------------------------- introspection

    def keys(self) -> List[str]:
        with self._lock:
            return [k for k, b in self._batches.items() if b]

    def size(self, key: Optional[str] = None) -> int:
        with self._lock:
            if key is not None:
                return len(self._batches.get(key, ()))
            return sum(len(b) for b in self._batches.values())

    def __len__(self) -> int:
        return self.size()
