from __future__ import annotations

from enum import Enum
from typing import Any


class InvalidRole(ValueError):
    """Raised when a gateway is built with a role other than producer/consumer."""


class Role(str, Enum):
    PRODUCER = "producer"
    CONSUMER = "consumer"

    @classmethod
    def coerce(cls, value: Any) -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidRole(
                f"Unknown role {value!r}; expected one of: "
                + ", ".join(r.value for r in cls)
            ) from e

    def __str__(self) -> str:
        return self.value
