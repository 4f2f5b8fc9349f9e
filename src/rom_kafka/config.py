"""Gateway configuration model.

GatewayConfig is built from an allow-list of options: anything not declared
below is dropped silently, so callers can pass a broader mapping (or newer
option sets) without breaking.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .brokers import flatten_lines

ENV_PREFIX = "KAFKA_"

# options that cannot be expressed as an environment string
_NOT_FROM_ENV = {"partitioner"}


def _flatten_hosts(value: Any) -> List[str]:
    return [str(line) for line in flatten_lines([value])]


class GatewayConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    ack_timeout_ms: int = 1_500
    async_: bool = Field(default=False, alias="async")
    client: Optional[str] = None
    compression_codec: Optional[str] = None
    hosts: List[str] = Field(default_factory=list)
    max_bytes: int = 1_048_576
    max_send_retries: int = 3
    max_wait_ms: int = 100
    metadata_refresh_interval_ms: int = 600_000
    min_bytes: int = 1
    partitioner: Optional[Callable[..., Any]] = None
    port: int = Field(default=9092, gt=0, lt=65536)
    required_acks: int = 0
    retry_backoff_ms: int = 100
    socket_timeout_ms: int = 10_000

    @model_validator(mode="before")
    @classmethod
    def _drop_none(cls, data: Any) -> Any:
        # an explicit None means "use the default"
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("hosts", mode="before")
    @classmethod
    def _coerce_hosts(cls, value: Any) -> List[str]:
        return _flatten_hosts(value)

    @field_validator("client", "compression_codec", mode="before")
    @classmethod
    def _to_name(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            value = value.value
        return str(value)

    @classmethod
    def option_names(cls) -> List[str]:
        """Public option names (``async`` rather than the ``async_`` attribute)."""
        return [f.alias or name for name, f in cls.model_fields.items()]

    def attributes(self) -> Dict[str, Any]:
        """Every option mapped to its value, defaults included.

        Values are returned as stored (no copy), except ``hosts`` which is a
        fresh list.
        """
        attrs: Dict[str, Any] = {}
        for name, f in type(self).model_fields.items():
            value = getattr(self, name)
            attrs[f.alias or name] = list(value) if name == "hosts" else value
        return attrs

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        """Build a config from ``KAFKA_<OPTION>`` variables.

        ``KAFKA_HOSTS`` is a comma-separated list. Values are coerced by
        pydantic, so ``KAFKA_ASYNC=true`` and ``KAFKA_PORT=9093`` work as
        expected.
        """
        return cls(**env_options(environ))


def env_options(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for option in GatewayConfig.option_names():
        if option in _NOT_FROM_ENV:
            continue
        raw = env.get(ENV_PREFIX + option.upper())
        if raw is None or raw == "":
            continue
        if option == "hosts":
            values[option] = [h.strip() for h in raw.split(",") if h.strip()]
        else:
            values[option] = raw
    return values
