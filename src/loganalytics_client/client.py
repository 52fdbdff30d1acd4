from __future__ import annotations

import json
from email.utils import formatdate
from typing import Any, Optional, Sequence

import httpx
from loguru import logger

from .errors import map_http_error
from .models import DeliveryResponse

API_VERSION = "2016-04-01"
DEFAULT_ENDPOINT = "ods.opinsights.azure.com"


class DataCollectorClient:
    """
    Async HTTP client for the Log Analytics Data Collector API.

    Usage:
        async with DataCollectorClient(customer_id, shared_key) as client:
            res = await client.post("ApacheAccessLog", docs, "eventtime")
            if client.is_success(res):
                ...

    Request signing is delegated to ``auth`` (any ``httpx.Auth``); the client
    itself only builds the request and maps transport failures. Without
    ``auth`` requests are sent unsigned. ``customer_id`` and ``shared_key``
    stay on the instance for signers to read.
    """

    def __init__(
        self,
        customer_id: str,
        shared_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        auth: Optional[httpx.Auth] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not customer_id:
            raise ValueError("customer_id required")
        self.customer_id = customer_id
        self.shared_key = shared_key
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self._client = httpx.AsyncClient(auth=auth, timeout=timeout, transport=transport)

    @property
    def url(self) -> str:
        return f"https://{self.customer_id}.{self.endpoint}/api/logs?api-version={API_VERSION}"

    # --------------- context management

    async def __aenter__(self) -> "DataCollectorClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --------------- public API

    async def post(
        self, stream_key: str, documents: Sequence[dict[str, Any]], time_field: str = ""
    ) -> DeliveryResponse:
        """POST one chunk of documents as ``stream_key``.

        Raises:
            DeliveryClientError: on transport failure (never on HTTP status)
        """
        body = json.dumps(list(documents), default=str)
        headers = {
            "Content-Type": "application/json",
            "Log-Type": stream_key,
            "x-ms-date": formatdate(usegmt=True),
        }
        if time_field:
            headers["time-generated-field"] = time_field

        try:
            res = await self._client.post(self.url, content=body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            raise map_http_error(e) from e

        logger.debug(f"Data Collector API responded {res.status_code} for log type {stream_key}")
        return DeliveryResponse(status_code=res.status_code, body=res.text)

    @staticmethod
    def is_success(response: DeliveryResponse) -> bool:
        return response.ok
