"""Commands that write to Kafka topics.

Example:
    gateway = Gateway("producer", "localhost:9092")
    greet = CreateCommand(gateway.relation("users"), name="greet")
    greet.where(partition=1).execute("Hi!")
    # => [{"value": "Hi!", "topic": "users"}]
    greet.with_(key="users").execute(["a", "b"])
    # => [{"value": "a", "topic": "users", "key": "users"}, {"value": "b", ...}]
"""

from __future__ import annotations

import time
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .dataset import Dataset, Producer
from .observability import logger, metrics
from .relation import Relation


class MissingKeyError(KeyError):
    """Raised by ``CreateCommand.with_`` when no ``key`` option is given."""


def _flatten(messages: Any) -> Iterator[Any]:
    for msg in messages:
        if isinstance(msg, (list, tuple)):
            yield from _flatten(msg)
        else:
            yield msg


class CreateCommand:
    """Publishes messages to the topic (and partition) of its relation.

    Commands are immutable: ``with_`` and ``where`` return new commands.
    """

    def __init__(
        self, relation: Relation, key: Optional[Any] = None, name: Optional[str] = None
    ) -> None:
        self._relation = relation
        self._key = key
        self._name = name

    @property
    def relation(self) -> Relation:
        return self._relation

    @property
    def key(self) -> Optional[Any]:
        return self._key

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def dataset(self) -> Dataset:
        return self._relation.dataset

    @property
    def producer(self) -> Producer:
        return self.dataset.producer

    def execute(self, *messages: Any) -> List[Dict[str, Any]]:
        """Send messages to the current topic/partition.

        Nested lists are flattened; every message is sent as ``str(message)``
        in a single publish call. Returns the tuples exactly as published.
        """
        tuples = [self._tuple(msg) for msg in _flatten(messages)]
        started = time.perf_counter()
        self.producer.publish(*tuples)
        metrics.timing("publish_seconds", time.perf_counter() - started)
        metrics.inc("messages_published", len(tuples))
        logger.info(
            "messages_published",
            topic=self.dataset.topic,
            partition=self.dataset.partition,
            count=len(tuples),
            keyed=self._key is not None,
        )
        return tuples

    __call__ = execute

    def with_(self, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "CreateCommand":
        """Return a new command using ``key`` to pick the Kafka partition.

        Accepts a mapping or keyword arguments; ``key`` is required.
        """
        opts = {**(options or {}), **kwargs}
        if "key" not in opts:
            raise MissingKeyError("key")
        return type(self)(self._relation, key=opts["key"], name=self._name)

    def where(self, **scope: Any) -> "CreateCommand":
        return type(self)(self._relation.where(**scope), key=self._key, name=self._name)

    def _tuple(self, message: Any) -> Dict[str, Any]:
        out: Dict[str, Any] = {"value": str(message), "topic": self.dataset.topic}
        if self._key is not None:
            out["key"] = self._key
        return out

    def __repr__(self) -> str:
        return f"CreateCommand(relation={self._relation!r}, key={self._key!r}, name={self._name!r})"
