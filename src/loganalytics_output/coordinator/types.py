from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Protocol, Sequence, runtime_checkable

from loganalytics_client.models import DeliveryResponse

Record = Mapping[str, Any]
Document = Dict[str, Any]


@runtime_checkable
class DeliveryClient(Protocol):
    """What the dispatcher needs from a delivery client."""

    async def post(
        self, stream_key: str, documents: Sequence[Document], time_field: str
    ) -> DeliveryResponse: ...

    def is_success(self, response: DeliveryResponse) -> bool: ...


class FlushTrigger(str, Enum):
    """Why a batch was flushed."""

    THRESHOLD = "threshold"
    TIMER = "timer"
    GROUP = "group"
    SHUTDOWN = "shutdown"
