from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from loganalytics_client import DEFAULT_ENDPOINT

from .errors import ConfigurationError
from .projection import FieldType
from .stream_key import StreamKeyTemplate

OutputMode = Literal["windowed", "batch"]


class OutputSettings(BaseSettings):
    """Output configuration, read from ``LA_*`` environment variables or kwargs."""

    model_config = SettingsConfigDict(env_prefix="LA_", env_file=".env", case_sensitive=False)

    customer_id: str
    shared_key: SecretStr
    log_type: str
    endpoint: str = DEFAULT_ENDPOINT
    time_generated_field: str = ""
    key_names: List[str] = Field(default_factory=list)
    key_types: Dict[str, str] = Field(default_factory=dict)

    max_batch_items: int = Field(50, gt=0)  # documents per POST
    flush_items: int = Field(50, gt=0)  # windowed: flush a key at N buffered docs
    flush_interval_sec: float = Field(5.0, gt=0)  # windowed: or when its batch is this old
    mode: OutputMode = "windowed"
    shutdown_timeout_sec: Optional[float] = Field(30.0, gt=0)
    request_timeout_sec: float = Field(30.0, gt=0)

    @field_validator("log_type")
    @classmethod
    def _validate_log_type(cls, v: str) -> str:
        StreamKeyTemplate.parse(v)
        return v

    @field_validator("key_types")
    @classmethod
    def _validate_key_types(cls, v: Dict[str, str]) -> Dict[str, str]:
        out = {}
        for key, t in v.items():
            try:
                out[key] = FieldType.parse(t).value
            except ValueError:
                raise ValueError(
                    f"Key type({t}) for key({key}) must be either string, boolean, or double"
                ) from None
        return out

    @property
    def stream_key(self) -> StreamKeyTemplate:
        return StreamKeyTemplate.parse(self.log_type)

    def stray_key_types(self) -> List[str]:
        """Typed keys that the allow-list will never deliver."""
        if not self.key_names:
            return []
        return [k for k in self.key_types if k not in self.key_names]

    def safe_dump(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["shared_key"] = "***"
        return data


def load_settings(**overrides: Any) -> OutputSettings:
    """Build settings from env + overrides; invalid values are fatal.

    Raises:
        ConfigurationError: if any value fails validation
    """
    try:
        return OutputSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
