"""
Log Analytics Output

Buffers structured log records and ships them in chunks to the Log
Analytics Data Collector API, with field projection, type coercion and
count/time windowed flushing.

Usage:
    from loganalytics_output import LogAnalyticsOutput, load_settings

    settings = load_settings(customer_id="...", shared_key="...", log_type="ApacheAccessLog")
    async with LogAnalyticsOutput(settings) as out:
        await out.receive({"status": "200", "method": "GET"})
"""

from .config import OutputSettings, load_settings
from .errors import ConfigurationError
from .output import LogAnalyticsOutput
from .projection import FieldType, convert_value, project
from .stream_key import StreamKeyTemplate
from .coordinator import (
    BatchAccumulator,
    DeliveryDispatcher,
    DeliveryOutcome,
    FlushScheduler,
    FlushTrigger,
    OutcomeKind,
)

__version__ = "1.0.0"
__all__ = [
    "LogAnalyticsOutput",
    "OutputSettings",
    "load_settings",
    "ConfigurationError",
    "FieldType",
    "convert_value",
    "project",
    "StreamKeyTemplate",
    "BatchAccumulator",
    "FlushScheduler",
    "FlushTrigger",
    "DeliveryDispatcher",
    "DeliveryOutcome",
    "OutcomeKind",
]
