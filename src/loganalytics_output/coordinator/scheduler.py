from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from time import monotonic
from typing import AsyncIterator, Callable, Dict, Literal, Mapping, Optional, Sequence, Set

from loguru import logger

from ..metrics import FLUSH_SUPPRESSED_TOTAL, FLUSH_TOTAL
from .accumulator import BatchAccumulator
from .dispatcher import DeliveryDispatcher
from .types import Document, FlushTrigger

SchedulerMode = Literal["windowed", "batch"]

_MIN_TICK_SEC = 0.01


class FlushScheduler:
    """
    Decides when buffered documents are handed to the dispatcher.

    windowed: documents are buffered per stream key and flushed when a key
      reaches ``flush_items`` or its batch is ``flush_interval`` seconds old,
      whichever comes first. One background timer task serves all keys.
    batch: the caller hands over a whole group already split by key
      (``flush_group``); the group boundary is the flush trigger, no timer.

    At most one flush per key runs at a time. A threshold flush that finds one
    in flight is skipped; the documents it would have taken stay buffered for
    the next trigger. The timer never considers a key that is being flushed,
    and runs each due key's flush as its own task so a slow delivery for one
    key does not hold up the others.

    Usage:
        sched = FlushScheduler(dispatcher, flush_items=50, flush_interval=5.0)
        sched.start()
        await sched.submit("ApacheAccessLog", doc)
        ...
        await sched.stop(timeout=30.0)   # final flush
    """

    def __init__(
        self,
        dispatcher: DeliveryDispatcher,
        *,
        mode: SchedulerMode = "windowed",
        flush_items: int = 50,
        flush_interval: float = 5.0,
        clock: Callable[[], float] = monotonic,
    ):
        if mode not in ("windowed", "batch"):
            raise ValueError(f"unknown scheduler mode: {mode}")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be > 0")

        self._dispatcher = dispatcher
        self._mode = mode
        self._flush_interval = flush_interval
        self._acc: BatchAccumulator[Document] = BatchAccumulator(
            flush_items if mode == "windowed" else None, clock=clock
        )

        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}  # holders + waiters per key
        self._timer: Optional[asyncio.Task] = None
        self._timer_flushes: Dict[str, asyncio.Task] = {}
        self._wakeup = asyncio.Event()
        self._stopping = asyncio.Event()
        self._stopped = False

    @property
    def mode(self) -> SchedulerMode:
        return self._mode

    @property
    def accumulator(self) -> BatchAccumulator[Document]:
        return self._acc

    @property
    def pending(self) -> int:
        """Documents buffered and not yet handed to the dispatcher."""
        return self._acc.size()

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> Set[str]:
        """Keys with a flush running or waiting for its turn."""
        return self._busy_keys()

    # --------------- lifecycle

    def start(self) -> None:
        """Start the flush timer (windowed mode only)."""
        if self._stopped:
            raise RuntimeError("scheduler already stopped")
        if self._mode != "windowed" or self._timer is not None:
            return
        self._timer = asyncio.create_task(self._run_timer(), name="loganalytics-flush-timer")
        logger.debug(f"Flush timer started (interval={self._flush_interval}s)")

    async def stop(self, timeout: Optional[float] = None) -> int:
        """Stop the timer and flush every non-empty batch.

        In-flight deliveries are awaited. When ``timeout`` elapses first the
        remaining work is cancelled and logged. Returns documents flushed.
        """
        if self._stopped:
            return 0
        self._stopped = True
        self._stopping.set()
        self._wakeup.set()

        try:
            return await asyncio.wait_for(self._shutdown(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Shutdown flush timed out after {timeout}s; "
                f"{self._acc.size()} buffered documents were not delivered"
            )
            return 0

    async def _shutdown(self) -> int:
        if self._timer is not None:
            await self._timer
        if self._timer_flushes:
            await asyncio.gather(*list(self._timer_flushes.values()), return_exceptions=True)
        flushed = await self.flush_all(FlushTrigger.SHUTDOWN, wait=True)
        logger.debug(f"Flush scheduler stopped ({flushed} documents flushed on shutdown)")
        return flushed

    # --------------- windowed mode

    async def submit(self, key: str, document: Document) -> int:
        """Buffer ``document`` under ``key``; flushes the key at the threshold.

        Returns the number of documents flushed by this call (usually 0).
        """
        if self._stopped:
            raise RuntimeError("scheduler is stopped")
        self._acc.add(key, document)
        if self._acc.should_flush(key):
            return await self.flush(key, FlushTrigger.THRESHOLD)
        return 0

    async def flush(self, key: str, trigger: FlushTrigger, *, wait: bool = False) -> int:
        """Drain and dispatch the batch for ``key``.

        With ``wait=False`` the call is a no-op while another flush of the
        same key is in flight.
        """
        if key in self._lock_users and not wait:
            FLUSH_SUPPRESSED_TOTAL.inc()
            logger.debug(f"Flush of log type {key} already in flight; {trigger.value} flush skipped")
            return 0

        async with self._key_lock(key):
            batch = self._acc.drain(key)
            if not batch:
                return 0
            await self._deliver(key, batch, trigger)
            return len(batch)

    async def flush_all(self, trigger: FlushTrigger, *, wait: bool = False) -> int:
        keys = self._acc.keys()
        if not keys:
            return 0
        counts = await asyncio.gather(*(self.flush(k, trigger, wait=wait) for k in keys))
        return sum(counts)

    async def _run_timer(self) -> None:
        interval = self._flush_interval
        while not self._stopping.is_set():
            delay = self._acc.seconds_until_due(interval, exclude=self._busy_keys())
            delay = interval if delay is None else max(delay, _MIN_TICK_SEC)
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            self._wakeup.clear()
            if self._stopping.is_set():
                break

            for key in self._acc.due_keys(interval, exclude=self._busy_keys()):
                task = asyncio.create_task(
                    self.flush(key, FlushTrigger.TIMER), name=f"loganalytics-flush-{key}"
                )
                self._timer_flushes[key] = task
                task.add_done_callback(lambda t, k=key: self._timer_flush_done(k, t))

    def _timer_flush_done(self, key: str, task: asyncio.Task) -> None:
        self._timer_flushes.pop(key, None)
        self._wakeup.set()
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Timer flush of log type {key} failed: {type(exc).__name__}: {exc}")

    def _busy_keys(self) -> Set[str]:
        return set(self._lock_users) | set(self._timer_flushes)

    # --------------- batch (group) mode

    async def flush_group(self, documents_by_key: Mapping[str, Sequence[Document]]) -> int:
        """Dispatch one externally delimited group, once per stream key.

        Keys are dispatched concurrently; a key that is still being delivered
        from an earlier group is waited for, not skipped.
        """
        if self._stopped:
            raise RuntimeError("scheduler is stopped")

        async def _one(key: str, docs: Sequence[Document]) -> int:
            async with self._key_lock(key):
                await self._deliver(key, docs, FlushTrigger.GROUP)
            return len(docs)

        groups = [(k, d) for k, d in documents_by_key.items() if d]
        counts = await asyncio.gather(*(_one(k, d) for k, d in groups))
        return sum(counts)

    # --------------- internals

    @asynccontextmanager
    async def _key_lock(self, key: str) -> AsyncIterator[None]:
        """Serialize work on ``key``; the lock is dropped once nobody holds or awaits it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
                self._wakeup.set()

    async def _deliver(self, key: str, batch: Sequence[Document], trigger: FlushTrigger) -> None:
        FLUSH_TOTAL.labels(trigger=trigger.value).inc()
        logger.debug(f"Flushing {len(batch)} documents as log type {key} ({trigger.value})")
        await self._dispatcher.dispatch(batch, key)
