from __future__ import annotations

from typing import Iterable, Optional, Tuple

import httpx
from loguru import logger

from loganalytics_client import DataCollectorClient

from .config import OutputSettings
from .coordinator import (
    BatchAccumulator,
    DeliveryClient,
    DeliveryDispatcher,
    Document,
    FlushScheduler,
    Record,
)
from .metrics import DOCUMENTS_DROPPED_TOTAL
from .projection import project
from .utils import generate_flush_id


class LogAnalyticsOutput:
    """
    Host-facing output: register / receive / receive_group / close.

    Usage:

        settings = load_settings(customer_id="...", shared_key="...", log_type="ApacheAccessLog")
        async with LogAnalyticsOutput(settings) as out:
            for rec in records:
                await out.receive(rec)
        # final flush on context exit

    ``receive`` may be called concurrently from many tasks; the output is
    shared, not per-worker.

    The client built by ``register`` signs requests with ``auth`` when one is
    given; without it requests go out unsigned and the Data Collector API
    rejects them.
    """

    def __init__(
        self,
        settings: OutputSettings,
        client: Optional[DeliveryClient] = None,
        *,
        auth: Optional[httpx.Auth] = None,
    ):
        self._settings = settings
        self._stream_key = settings.stream_key
        self._client = client
        self._auth = auth
        self._owns_client = client is None
        self._scheduler: Optional[FlushScheduler] = None
        self._closed = False

    @property
    def settings(self) -> OutputSettings:
        return self._settings

    @property
    def scheduler(self) -> FlushScheduler:
        if self._scheduler is None:
            raise RuntimeError("output is not registered; call register() first")
        return self._scheduler

    # --------------- context management

    async def __aenter__(self) -> "LogAnalyticsOutput":
        self.register()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # --------------- lifecycle

    def register(self) -> None:
        """Build the client and the flush machinery; start the timer if windowed."""
        if self._scheduler is not None:
            raise RuntimeError("output already registered")
        s = self._settings

        for key in s.stray_key_types():
            logger.warning(f"Key type for key({key}) is ignored: key is not listed in key_names")

        if self._client is None:
            self._client = DataCollectorClient(
                s.customer_id,
                s.shared_key.get_secret_value(),
                s.endpoint,
                auth=self._auth,
                timeout=s.request_timeout_sec,
            )
            if self._auth is None:
                logger.warning("No request signer configured; deliveries will be sent unsigned")

        dispatcher = DeliveryDispatcher(
            self._client,
            max_batch_items=s.max_batch_items,
            time_field=s.time_generated_field,
        )
        self._scheduler = FlushScheduler(
            dispatcher,
            mode=s.mode,
            flush_items=s.flush_items,
            flush_interval=s.flush_interval_sec,
        )
        self._scheduler.start()
        logger.debug(
            f"Registered output: log_type={s.log_type} mode={s.mode} "
            f"max_batch_items={s.max_batch_items}"
        )

    async def receive(self, record: Record) -> None:
        """Accept one record."""
        scheduler = self.scheduler
        if scheduler.mode == "batch":
            await self.receive_group([record])
            return

        prepared = self._prepare(record)
        if prepared is not None:
            await scheduler.submit(*prepared)

    async def receive_group(self, records: Iterable[Record]) -> None:
        """Accept an externally delimited group of records."""
        scheduler = self.scheduler
        if scheduler.mode == "windowed":
            for record in records:
                await self.receive(record)
            return

        records = list(records)
        flush_id = generate_flush_id()
        logger.debug(f"Start receive: {flush_id}. Received {len(records)} events")

        group: BatchAccumulator[Document] = BatchAccumulator()
        for record in records:
            prepared = self._prepare(record)
            if prepared is not None:
                group.add(*prepared)

        if not group:
            logger.debug("No documents in group. Skipping")
            return

        await scheduler.flush_group(group.drain_all())
        logger.debug(f"End receive: {flush_id}")

    async def close(self) -> None:
        """Final flush, then release the client. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._scheduler is not None:
                await self._scheduler.stop(self._settings.shutdown_timeout_sec)
        finally:
            if self._owns_client and isinstance(self._client, DataCollectorClient):
                await self._client.aclose()

    # --------------- internals

    def _prepare(self, record: Record) -> Optional[Tuple[str, Document]]:
        key = self._stream_key.resolve(record)
        document = project(record, self._settings.key_names, self._settings.key_types)
        if not document:
            DOCUMENTS_DROPPED_TOTAL.labels(reason="empty_projection").inc()
            return None
        return key, document
