"""Example producer publishing a few keyed greetings to the ``users`` topic.

Requires a reachable broker; set ``KAFKA_HOSTS`` (comma separated) to point
at it, otherwise ``localhost:9092`` is used.
"""

from __future__ import annotations

from rom_kafka import CreateCommand, Gateway


def run_producer() -> None:
    gateway = Gateway.from_env("producer")
    greet = CreateCommand(gateway.relation("users"), name="greet")

    try:
        print(greet.execute("Hi!"))
        # same key, same partition: ordering is kept per user
        print(greet.with_(key="alice").execute(["Hello", "How are you?"]))
        print(greet.where(partition=0).execute("Partition zero says hi"))
    finally:
        gateway.close()


if __name__ == "__main__":
    run_producer()
