"""Per-topic dataset handles backed by kafka-python clients.

A Dataset bundles the gateway role, a topic and the gateway attributes. The
Kafka clients are only built on first access of ``producer`` / ``consumer``,
so creating datasets never touches the network.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

from kafka import KafkaConsumer, KafkaProducer, TopicPartition

from .brokers import BrokerSet
from .observability import logger
from .roles import Role


class DatasetError(Exception):
    pass


def _encode(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def client_options(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """kafka-python options shared by producers and consumers."""
    opts: Dict[str, Any] = {
        "bootstrap_servers": BrokerSet(
            *attributes.get("hosts", []), port=attributes.get("port")
        ).to_list(),
        "metadata_max_age_ms": attributes["metadata_refresh_interval_ms"],
        "retry_backoff_ms": attributes["retry_backoff_ms"],
        "request_timeout_ms": attributes["socket_timeout_ms"],
    }
    if attributes.get("client"):
        opts["client_id"] = attributes["client"]
    return opts


def producer_options(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    opts = client_options(attributes)
    opts.update(
        acks=attributes["required_acks"],
        retries=attributes["max_send_retries"],
        compression_type=attributes["compression_codec"],
        max_request_size=attributes["max_bytes"],
    )
    if attributes.get("partitioner") is not None:
        opts["partitioner"] = attributes["partitioner"]
    return opts


def consumer_options(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    opts = client_options(attributes)
    opts.update(
        fetch_min_bytes=attributes["min_bytes"],
        fetch_max_wait_ms=attributes["max_wait_ms"],
        fetch_max_bytes=attributes["max_bytes"],
        enable_auto_commit=False,
    )
    return opts


class Producer:
    """Publishes message tuples through a KafkaProducer.

    ``publish`` sends every tuple and, unless the gateway runs in async mode,
    blocks until each send is acknowledged (bounded by ``ack_timeout_ms``).
    Client errors propagate unchanged.
    """

    def __init__(
        self,
        client: KafkaProducer,
        partition: Optional[int] = None,
        wait: bool = True,
        ack_timeout_ms: int = 1_500,
    ) -> None:
        self.client = client
        self.partition = partition
        self.wait = wait
        self.ack_timeout_ms = ack_timeout_ms

    def publish(self, *tuples: Dict[str, Any]) -> List[Dict[str, Any]]:
        futures = [
            self.client.send(
                t["topic"],
                value=_encode(t["value"]),
                key=_encode(t.get("key")),
                partition=self.partition,
            )
            for t in tuples
        ]
        if self.wait:
            for fut in futures:
                fut.get(timeout=self.ack_timeout_ms / 1000.0)
        return list(tuples)


class _Clients:
    """Kafka clients shared by a dataset and its scoped copies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._producer: Optional[KafkaProducer] = None
        self._consumers: List[KafkaConsumer] = []

    def producer(self, attributes: Mapping[str, Any]) -> KafkaProducer:
        with self._lock:
            if self._producer is None:
                self._producer = KafkaProducer(**producer_options(attributes))
            return self._producer

    def consumer(
        self, attributes: Mapping[str, Any], topic: str, partition: Optional[int], offset: int
    ) -> KafkaConsumer:
        opts = consumer_options(attributes)
        if partition is None:
            client = KafkaConsumer(topic, **opts)
        else:
            client = KafkaConsumer(**opts)
            tp = TopicPartition(topic, partition)
            client.assign([tp])
            client.seek(tp, offset)
        with self._lock:
            self._consumers.append(client)
        return client

    def close(self) -> None:
        with self._lock:
            producer, consumers = self._producer, list(self._consumers)
            self._producer = None
            self._consumers.clear()
        if producer is not None:
            producer.close()
        for c in consumers:
            c.close()


class Dataset:
    def __init__(
        self,
        role: Any,
        topic: str,
        attributes: Mapping[str, Any],
        partition: Optional[int] = None,
        offset: int = 0,
        _clients: Optional[_Clients] = None,
    ) -> None:
        self.role = Role.coerce(role)
        self.topic = str(topic)
        self.attributes: Dict[str, Any] = dict(attributes)
        self.partition = partition
        self.offset = offset
        self._clients = _clients or _Clients()
        self._lock = threading.Lock()
        self._producer: Optional[Producer] = None
        self._consumer: Optional[KafkaConsumer] = None

    @property
    def producer(self) -> Producer:
        if self.role is not Role.PRODUCER:
            raise DatasetError(f"Dataset '{self.topic}' is a {self.role} and has no producer")
        with self._lock:
            if self._producer is None:
                self._producer = Producer(
                    self._clients.producer(self.attributes),
                    partition=self.partition,
                    wait=not self.attributes.get("async", False),
                    ack_timeout_ms=self.attributes["ack_timeout_ms"],
                )
                logger.info(
                    "dataset_client_created",
                    topic=self.topic,
                    role=str(self.role),
                    partition=self.partition,
                )
            return self._producer

    @property
    def consumer(self) -> KafkaConsumer:
        if self.role is not Role.CONSUMER:
            raise DatasetError(f"Dataset '{self.topic}' is a {self.role} and has no consumer")
        with self._lock:
            if self._consumer is None:
                self._consumer = self._clients.consumer(
                    self.attributes, self.topic, self.partition, self.offset
                )
                logger.info(
                    "dataset_client_created",
                    topic=self.topic,
                    role=str(self.role),
                    partition=self.partition,
                    offset=self.offset,
                )
            return self._consumer

    def using(self, **scope: Any) -> "Dataset":
        """Return a copy scoped to another ``partition`` and/or ``offset``.

        The copy shares this dataset's Kafka clients.
        """
        unknown = set(scope) - {"partition", "offset"}
        if unknown:
            raise DatasetError(f"Unsupported dataset scope: {', '.join(sorted(unknown))}")
        return Dataset(
            self.role,
            self.topic,
            self.attributes,
            partition=scope.get("partition", self.partition),
            offset=scope.get("offset", self.offset),
            _clients=self._clients,
        )

    def close(self) -> None:
        self._clients.close()
        with self._lock:
            self._producer = None
            self._consumer = None

    def __repr__(self) -> str:
        return (
            f"Dataset(role={self.role.value!r}, topic={self.topic!r}, "
            f"partition={self.partition!r}, offset={self.offset!r})"
        )
