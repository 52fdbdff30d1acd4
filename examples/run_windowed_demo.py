"""
Demo: windowed buffering with a console delivery client.

Records are routed by the ``service`` field (templated log type), flushed at
3 documents per key or after 1 second, and posted in chunks of 2.
No network access: the client prints each chunk and rejects every 4th one.
"""

import asyncio
import random
from typing import Sequence

from loguru import logger

from loganalytics_client import DeliveryResponse
from loganalytics_output import LogAnalyticsOutput, load_settings


class ConsoleClient:
    """Prints chunks instead of posting them."""

    def __init__(self):
        self.posts = 0

    async def post(self, stream_key: str, documents: Sequence[dict], time_field: str):
        self.posts += 1
        await asyncio.sleep(0.05)  # simulate I/O
        status = 500 if self.posts % 4 == 0 else 200
        logger.info(f"POST {stream_key} ({len(documents)} docs) -> {status}")
        return DeliveryResponse(status_code=status)

    @staticmethod
    def is_success(response: DeliveryResponse) -> bool:
        return response.ok


async def main():
    settings = load_settings(
        customer_id="00000000-0000-0000-0000-000000000000",
        shared_key="ZGVtbw==",
        log_type="%{service}_Log",
        key_names=["service", "latency_ms", "cached"],
        key_types={"latency_ms": "double", "cached": "boolean"},
        max_batch_items=2,
        flush_items=3,
        flush_interval_sec=1.0,
    )

    async with LogAnalyticsOutput(settings, client=ConsoleClient()) as out:
        for i in range(10):
            await out.receive(
                {
                    "service": random.choice(["web", "api"]),
                    "latency_ms": str(random.randint(1, 500)),
                    "cached": random.choice(["true", "false"]),
                    "ignored": i,
                }
            )
            await asyncio.sleep(0.2)
        logger.info(f"{out.scheduler.pending} documents pending before shutdown")


if __name__ == "__main__":
    asyncio.run(main())
