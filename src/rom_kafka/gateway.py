"""Gateway: connection settings for one Kafka role plus a per-topic dataset cache.

The gateway is a pure configuration/caching layer. It never talks to Kafka
itself; datasets build their clients lazily.

Example:
    gateway = Gateway("producer", "localhost:9092", hosts=["kafka-2"], required_acks=1)
    gateway.hosts()             # ["localhost:9092", "kafka-2:9092"]
    users = gateway.dataset("users")
    gateway["users"] is users  # True
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from .brokers import BrokerSet
from .config import GatewayConfig, env_options
from .dataset import Dataset
from .observability import logger, metrics
from .relation import Relation
from .roles import Role


def _topic_key(name: Any) -> str:
    if isinstance(name, Enum):
        name = name.value
    return str(name)


class Gateway:
    def __init__(self, role: Any, *addresses: Any, **options: Any) -> None:
        self._role = Role.coerce(role)
        self._brokers = BrokerSet(*addresses, **options)
        hosts = [addresses, options.get("hosts")]
        self._config = GatewayConfig(**{**options, "hosts": hosts})
        self._datasets: Dict[str, Dataset] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls, role: Any, environ: Optional[Mapping[str, str]] = None) -> "Gateway":
        """Build a gateway from ``KAFKA_<OPTION>`` environment variables."""
        return cls(role, **env_options(environ))

    @property
    def role(self) -> Role:
        return self._role

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def brokers(self) -> BrokerSet:
        return self._brokers

    def attributes(self) -> Dict[str, Any]:
        return self._config.attributes()

    def hosts(self) -> List[str]:
        return self._brokers.to_list()

    # option readers

    @property
    def ack_timeout_ms(self) -> int:
        return self._config.ack_timeout_ms

    @property
    def async_(self) -> bool:
        return self._config.async_

    @property
    def client(self) -> Optional[str]:
        return self._config.client

    @property
    def compression_codec(self) -> Optional[str]:
        return self._config.compression_codec

    @property
    def max_bytes(self) -> int:
        return self._config.max_bytes

    @property
    def max_send_retries(self) -> int:
        return self._config.max_send_retries

    @property
    def max_wait_ms(self) -> int:
        return self._config.max_wait_ms

    @property
    def metadata_refresh_interval_ms(self) -> int:
        return self._config.metadata_refresh_interval_ms

    @property
    def min_bytes(self) -> int:
        return self._config.min_bytes

    @property
    def partitioner(self) -> Optional[Callable[..., Any]]:
        return self._config.partitioner

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def required_acks(self) -> int:
        return self._config.required_acks

    @property
    def retry_backoff_ms(self) -> int:
        return self._config.retry_backoff_ms

    @property
    def socket_timeout_ms(self) -> int:
        return self._config.socket_timeout_ms

    # dataset registry

    def lookup(self, name: Any) -> Optional[Dataset]:
        """Return the dataset registered under ``name``, or None."""
        with self._lock:
            return self._datasets.get(_topic_key(name))

    __getitem__ = lookup

    def has_dataset(self, name: Any) -> bool:
        return self.lookup(name) is not None

    def datasets(self) -> List[str]:
        with self._lock:
            return list(self._datasets)

    def dataset(self, topic: Any) -> Dataset:
        """Return the dataset for ``topic``, building and registering it once."""
        key = _topic_key(topic)
        with self._lock:
            ds = self._datasets.get(key)
            if ds is None:
                ds = Dataset(self._role, key, self.attributes())
                self._datasets[key] = ds
                created = True
            else:
                created = False
        if created:
            metrics.inc("datasets_created")
            logger.info("dataset_registered", topic=key, role=str(self._role))
        return ds

    def relation(self, topic: Any) -> Relation:
        return Relation(self.dataset(topic))

    def close(self) -> None:
        """Close Kafka clients opened by the registered datasets."""
        with self._lock:
            datasets = list(self._datasets.values())
        for ds in datasets:
            ds.close()

    def __repr__(self) -> str:
        return f"Gateway(role={self._role.value!r}, hosts={self.hosts()!r})"
