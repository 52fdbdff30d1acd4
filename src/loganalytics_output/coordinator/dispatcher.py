"""
Chunked delivery of flushed batches.

Every chunk of a batch is posted exactly once, in order. Each post ends in a
DeliveryOutcome: success, rejected (non-success status) or transport error.
Failed chunks are logged with their payload and dropped; there is no retry
and no dead-letter output, so delivery is at-most-once.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Iterator, List, Optional, Sequence, TypeVar

from loguru import logger

from ..metrics import (
    DELIVERY_CHUNKS_TOTAL,
    DELIVERY_DOCUMENTS_TOTAL,
    DELIVERY_LATENCY_MS,
)
from ..utils import to_json
from .types import DeliveryClient, Document

T = TypeVar("T")


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of posting one chunk.

    Attributes:
        kind: success / rejected / transport_error
        stream_key: Log type the chunk was posted as
        size: Number of documents in the chunk
        status_code: HTTP status (None for transport errors)
        detail: Exception text for transport errors
    """

    kind: OutcomeKind
    stream_key: str
    size: int
    status_code: Optional[int] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, stream_key: str, size: int, status_code: int) -> "DeliveryOutcome":
        return cls(OutcomeKind.SUCCESS, stream_key, size, status_code=status_code)

    @classmethod
    def rejected(cls, stream_key: str, size: int, status_code: int) -> "DeliveryOutcome":
        return cls(OutcomeKind.REJECTED, stream_key, size, status_code=status_code)

    @classmethod
    def transport_error(cls, stream_key: str, size: int, detail: str) -> "DeliveryOutcome":
        return cls(OutcomeKind.TRANSPORT_ERROR, stream_key, size, detail=detail)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def iter_chunks(batch: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of ``batch`` holding at most ``size`` items."""
    if size <= 0:
        raise ValueError("chunk size must be > 0")
    for start in range(0, len(batch), size):
        yield list(batch[start : start + size])


class DeliveryDispatcher:
    """Posts batches to a DeliveryClient in size-bounded chunks."""

    def __init__(self, client: DeliveryClient, *, max_batch_items: int = 50, time_field: str = ""):
        if max_batch_items <= 0:
            raise ValueError("max_batch_items must be > 0")
        self._client = client
        self._max_batch_items = max_batch_items
        self._time_field = time_field

    @property
    def max_batch_items(self) -> int:
        return self._max_batch_items

    async def dispatch(
        self,
        batch: Sequence[Document],
        stream_key: str,
        time_field: Optional[str] = None,
    ) -> List[DeliveryOutcome]:
        """Post ``batch`` chunk by chunk. Never raises on delivery failure."""
        tf = self._time_field if time_field is None else time_field
        outcomes = []
        for chunk in iter_chunks(batch, self._max_batch_items):
            outcomes.append(await self.deliver_chunk(chunk, stream_key, tf))
        return outcomes

    async def deliver_chunk(
        self, chunk: Sequence[Document], stream_key: str, time_field: str
    ) -> DeliveryOutcome:
        logger.debug(
            f"Posting log batch (log count: {len(chunk)}) as log type {stream_key} "
            f"to DataCollector API. First log: {to_json(chunk[0]) if chunk else None}"
        )
        t0 = perf_counter()
        try:
            res = await self._client.post(stream_key, chunk, time_field)
        except Exception as exc:
            outcome = DeliveryOutcome.transport_error(
                stream_key, len(chunk), f"{type(exc).__name__}: {exc}"
            )
            logger.error(
                f"Exception occurred in posting to DataCollector API as log type {stream_key}: "
                f"'{outcome.detail}', data=>{to_json(list(chunk))}"
            )
        else:
            if self._client.is_success(res):
                outcome = DeliveryOutcome.success(stream_key, len(chunk), res.status_code)
                logger.debug(
                    f"Successfully posted logs as log type {stream_key} "
                    f"with result code {res.status_code} to DataCollector API"
                )
            else:
                outcome = DeliveryOutcome.rejected(stream_key, len(chunk), res.status_code)
                logger.error(
                    f"DataCollector API request failure (log type {stream_key}): "
                    f"error code: {res.status_code}, data=>{to_json(list(chunk))}"
                )
        finally:
            DELIVERY_LATENCY_MS.labels(stream=stream_key).observe((perf_counter() - t0) * 1000.0)

        DELIVERY_CHUNKS_TOTAL.labels(stream=stream_key, outcome=outcome.kind.value).inc()
        DELIVERY_DOCUMENTS_TOTAL.labels(stream=stream_key, outcome=outcome.kind.value).inc(
            len(chunk)
        )
        return outcome
