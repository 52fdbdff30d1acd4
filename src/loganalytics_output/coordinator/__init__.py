"""Buffering and flush-scheduling engine.

Record path: accumulator (per-key buffer) -> scheduler (threshold/timer or
group trigger) -> dispatcher (chunked delivery, typed outcomes).
"""

from .types import Record, Document, DeliveryClient, FlushTrigger
from .accumulator import BatchAccumulator
from .dispatcher import DeliveryDispatcher, DeliveryOutcome, OutcomeKind, iter_chunks
from .scheduler import FlushScheduler, SchedulerMode

__all__ = [
    # types
    "Record",
    "Document",
    "DeliveryClient",
    "FlushTrigger",
    # buffering
    "BatchAccumulator",
    "FlushScheduler",
    "SchedulerMode",
    # delivery
    "DeliveryDispatcher",
    "DeliveryOutcome",
    "OutcomeKind",
    "iter_chunks",
]
