"""
Errors raised by the output engine.

Only configuration problems are fatal; delivery failures are reported as
DeliveryOutcome values and never raised.
"""


class ConfigurationError(ValueError):
    """Invalid output configuration (halts startup)."""

    pass
