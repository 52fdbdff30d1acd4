"""
Custom exceptions for the Log Analytics delivery client.

Transport-level failures are mapped into a small hierarchy so callers can
classify them without importing httpx.
"""

import httpx


class DeliveryClientError(Exception):
    """Base error for the delivery client."""

    pass


class DeliveryTransportError(DeliveryClientError):
    """Connection, protocol or network errors while posting a chunk."""

    pass


class DeliveryTimeout(DeliveryTransportError):
    """Connect/read/write/pool timeouts."""

    pass


def map_http_error(e: Exception) -> DeliveryClientError:
    if isinstance(e, httpx.TimeoutException):
        return DeliveryTimeout(str(e) or type(e).__name__)
    if isinstance(e, httpx.TransportError):
        return DeliveryTransportError(str(e) or type(e).__name__)
    return DeliveryClientError(str(e) or type(e).__name__)
