"""
Log Analytics Delivery Client

Thin async client for posting JSON documents to the Log Analytics
HTTP Data Collector API.

Usage:
    from loganalytics_client import DataCollectorClient

    async with DataCollectorClient("<workspace id>", "<shared key>") as client:
        res = await client.post("ApacheAccessLog", [{"status": 200}], "")
        client.is_success(res)
"""

from .client import DataCollectorClient, API_VERSION, DEFAULT_ENDPOINT
from .errors import DeliveryClientError, DeliveryTransportError, DeliveryTimeout, map_http_error
from .models import DeliveryResponse

__version__ = "1.0.0"
__all__ = [
    "DataCollectorClient",
    "API_VERSION",
    "DEFAULT_ENDPOINT",
    "DeliveryResponse",
    "DeliveryClientError",
    "DeliveryTransportError",
    "DeliveryTimeout",
    "map_http_error",
]
