"""Broker addresses and the immutable collection built from them.

A BrokerSet is assembled from positional address lines and the ``hosts`` /
``port`` options. Every other option is ignored, so a gateway can hand over
its whole option mapping.

Example:
    brokers = BrokerSet("localhost:9092", "127.0.0.1", hosts=["127.0.0.2:9094"], port=9093)
    brokers.to_list()  # ["localhost:9092", "127.0.0.1:9093", "127.0.0.2:9094"]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Tuple

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9092


class InvalidAddress(ValueError):
    """Raised when a broker address cannot be parsed."""


@dataclass(frozen=True)
class BrokerAddress:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not self.host or any(ch.isspace() for ch in self.host):
            raise InvalidAddress(f"Invalid broker host: {self.host!r}")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise InvalidAddress(f"Broker port must be an integer, got {self.port!r}")
        if not 0 < self.port < 65536:
            raise InvalidAddress(f"Broker port out of range: {self.port}")

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @staticmethod
    def parse(line: str, port: Optional[Any] = None) -> "BrokerAddress":
        """Parse ``host`` or ``host:port``.

        An inline port always wins; ``port`` only fills in for a bare host.
        Bracketed IPv6 literals (``[::1]:9092``) are accepted.
        """
        text = str(line).strip()
        host, inline = _split(text)
        raw_port = inline if inline is not None else port
        if raw_port is None:
            return BrokerAddress(host=host)
        return BrokerAddress(host=host, port=_to_port(raw_port, text))


def _split(text: str) -> Tuple[str, Optional[str]]:
    if text.startswith("["):
        end = text.find("]")
        if end == -1:
            raise InvalidAddress(f"Unterminated IPv6 literal: {text!r}")
        rest = text[end + 1 :]
        if rest and not rest.startswith(":"):
            raise InvalidAddress(f"Invalid broker address: {text!r}")
        return text[1:end], (rest[1:] if rest else None)
    if text.count(":") == 1:
        host, port = text.split(":")
        return host, port
    # bare host, or an unbracketed IPv6 literal
    return text, None


def _to_port(value: Any, line: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidAddress(f"Invalid port in broker address {line!r}: {value!r}") from e


def flatten_lines(items: Iterable[Any]) -> Iterator[Any]:
    """Yield address lines from nested lists, tuples and sets, skipping None."""
    for item in items:
        if item is None:
            continue
        if isinstance(item, (list, tuple, set, frozenset)):
            yield from flatten_lines(item)
        else:
            yield item


class BrokerSet:
    """Immutable, ordered collection of broker addresses.

    Never empty: without any address input a single ``localhost`` broker is
    used. Equality compares the ordered ``host:port`` strings. Duplicates
    are kept as given.
    """

    __slots__ = ("_brokers",)

    def __init__(self, *lines: Any, **options: Any) -> None:
        port = options.get("port")
        flat = list(flatten_lines(list(lines) + [options.get("hosts")]))
        brokers = tuple(BrokerAddress.parse(line, port) for line in flat)
        if not brokers:
            brokers = (BrokerAddress.parse(DEFAULT_HOST, port),)
        object.__setattr__(self, "_brokers", brokers)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("BrokerSet is immutable")

    @property
    def brokers(self) -> Tuple[BrokerAddress, ...]:
        return self._brokers

    def to_list(self) -> List[str]:
        return [str(b) for b in self._brokers]

    def __iter__(self) -> Iterator[BrokerAddress]:
        return iter(self._brokers)

    def __len__(self) -> int:
        return len(self._brokers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BrokerSet):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __hash__(self) -> int:
        return hash(tuple(self.to_list()))

    def __repr__(self) -> str:
        return f"BrokerSet({self.to_list()!r})"
