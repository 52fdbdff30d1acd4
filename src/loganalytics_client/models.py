"""
Pydantic models returned by the delivery client.
"""

from pydantic import BaseModel


class DeliveryResponse(BaseModel):
    """Outcome of one POST to the Data Collector API."""

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
