"""
Pytest configuration and fixtures for loganalytics-output.

Provides a scripted fake delivery client, a settings factory and a loguru
capture fixture.
"""

import asyncio
import sys
from typing import Any, Dict, List, Optional, Sequence

import pytest
from loguru import logger

from loganalytics_client.models import DeliveryResponse
from loganalytics_output.config import load_settings


class FakeDeliveryClient:
    """Delivery client that records calls and answers from a script.

    ``script[i]`` is the answer to the i-th post: an HTTP status code, or an
    exception to raise. Posts past the end of the script succeed with 200.
    ``gate`` (an asyncio.Event) blocks every post until it is set; ``gates``
    does the same for posts to the named stream keys only.
    """

    def __init__(
        self,
        script: Optional[Sequence[Any]] = None,
        gate: Optional[asyncio.Event] = None,
        gates: Optional[Dict[str, asyncio.Event]] = None,
    ):
        self.script = list(script or [])
        self.gate = gate
        self.gates = dict(gates or {})
        self.calls: List[tuple] = []

    async def post(self, stream_key, documents, time_field):
        idx = len(self.calls)
        self.calls.append((stream_key, list(documents), time_field))
        if self.gate is not None:
            await self.gate.wait()
        if stream_key in self.gates:
            await self.gates[stream_key].wait()
        answer = self.script[idx] if idx < len(self.script) else 200
        if isinstance(answer, BaseException):
            raise answer
        return DeliveryResponse(status_code=answer)

    @staticmethod
    def is_success(response: DeliveryResponse) -> bool:
        return response.ok

    def documents(self, stream_key: Optional[str] = None) -> list:
        return [d for key, docs, _ in self.calls if stream_key in (None, key) for d in docs]


@pytest.fixture
def fake_client():
    return FakeDeliveryClient()


@pytest.fixture
def make_settings(monkeypatch):
    """Settings factory with valid credentials; kwargs override fields."""
    for var in ("LA_CUSTOMER_ID", "LA_SHARED_KEY", "LA_LOG_TYPE", "LA_MODE"):
        monkeypatch.delenv(var, raising=False)

    def _make(**overrides):
        cfg = {
            "customer_id": "11111111-2222-3333-4444-555555555555",
            "shared_key": "c2VjcmV0LWtleQ==",
            "log_type": "ApacheAccessLog",
        }
        cfg.update(overrides)
        return load_settings(**cfg)

    return _make


@pytest.fixture
def log_messages():
    """Collect loguru messages (DEBUG and up) emitted during the test."""
    messages: List[Any] = []
    handler_id = logger.add(messages.append, level="DEBUG", format="{level}|{message}")
    yield messages
    try:
        logger.remove(handler_id)
    except ValueError:
        pass  # already removed by a CLI under test


@pytest.fixture
def restore_logger():
    """Reset loguru sinks after code that reconfigures them."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def make_client():
    """The FakeDeliveryClient class, for tests that need a scripted client."""
    return FakeDeliveryClient
