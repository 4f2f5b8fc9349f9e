import threading
from enum import Enum
from unittest.mock import Mock, patch

import pytest

from rom_kafka.dataset import Dataset
from rom_kafka.gateway import Gateway
from rom_kafka.roles import InvalidRole, Role


class Topics(Enum):
    FOOBAR = "foobar"


def test_attributes_default_settings(default_attributes):
    assert Gateway("producer").attributes() == default_attributes


def test_role_is_initialized():
    assert Gateway("producer").role is Role.PRODUCER
    assert Gateway(Role.CONSUMER).role == "consumer"


def test_invalid_role_raises():
    with pytest.raises(InvalidRole):
        Gateway("broker")
    with pytest.raises(InvalidRole):
        Gateway(None)


def test_hosts_from_strings_and_option():
    hosts = ["localhost:9092", "127.0.0.1"]
    expected = ["localhost:9092", "127.0.0.1:9092"]
    assert Gateway("producer", *hosts).hosts() == expected
    assert Gateway("producer", hosts=hosts).hosts() == expected


def test_hosts_from_mixed_inputs_are_merged():
    gw = Gateway("producer", "127.0.0.1:9093", hosts=["localhost"], port=9094)
    assert gw.hosts() == ["127.0.0.1:9093", "localhost:9094"]
    assert gw.attributes()["hosts"] == ["127.0.0.1:9093", "localhost"]


@pytest.mark.parametrize(
    "option,value",
    [
        ("ack_timeout_ms", 1_000),
        ("client", "foo"),
        ("compression_codec", "gzip"),
        ("max_bytes", 1_000),
        ("max_send_retries", 2),
        ("max_wait_ms", 2_000),
        ("metadata_refresh_interval_ms", 600),
        ("min_bytes", 1_024),
        ("port", 9093),
        ("required_acks", 1),
        ("retry_backoff_ms", 200),
        ("socket_timeout_ms", 1_000),
    ],
)
def test_option_is_initialized(option, value):
    gw = Gateway("producer", **{option: value})
    assert getattr(gw, option) == value
    assert gw.attributes()[option] == value


def test_async_option():
    gw = Gateway("producer", **{"async": True})
    assert gw.async_ is True
    assert gw.attributes()["async"] is True


def test_partitioner_is_kept_as_given():
    partitioner = Mock(name="partitioner")
    gw = Gateway("producer", partitioner=partitioner)
    assert gw.partitioner is partitioner


def test_unknown_options_are_ignored():
    gw = Gateway("producer", unknown_key="foo")
    assert "unknown_key" not in gw.attributes()


def test_lookup_missing_returns_none():
    gw = Gateway("producer")
    assert gw["foo"] is None
    assert gw.lookup(Topics.FOOBAR) is None
    assert gw.has_dataset("foo") is False


def test_dataset_builds_with_role_topic_and_attributes():
    gw = Gateway("producer")
    fake = Mock(name="dataset")
    with patch("rom_kafka.gateway.Dataset", return_value=fake) as klass:
        ds = gw.dataset("foobar")
    klass.assert_called_once_with(Role.PRODUCER, "foobar", gw.attributes())
    assert ds is fake


def test_dataset_is_registered_by_string_and_enum():
    gw = Gateway("producer")
    ds = gw.dataset(Topics.FOOBAR)
    assert isinstance(ds, Dataset)
    assert ds.topic == "foobar"
    assert gw["foobar"] is ds
    assert gw.lookup(Topics.FOOBAR) is ds
    assert gw.has_dataset("foobar") is True
    assert gw.has_dataset("bar") is False
    assert gw.datasets() == ["foobar"]


def test_dataset_is_cached():
    gw = Gateway("producer")
    first = gw.dataset("users")
    assert gw.dataset("users") is first
    assert gw.dataset(Topics.FOOBAR) is not first


def test_dataset_concurrent_first_access_yields_one_instance():
    gw = Gateway("producer")
    barrier = threading.Barrier(8)
    seen = []

    def worker():
        barrier.wait()
        seen.append(gw.dataset("race"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(seen) == 8
    assert all(ds is seen[0] for ds in seen)
    assert gw["race"] is seen[0]


def test_relation_wraps_cached_dataset():
    gw = Gateway("producer")
    rel = gw.relation("users")
    assert rel.dataset is gw.dataset("users")
    assert rel.name == "users"


def test_from_env():
    gw = Gateway.from_env(
        "consumer", {"KAFKA_HOSTS": "a:1,b", "KAFKA_MAX_WAIT_MS": "250"}
    )
    assert gw.role is Role.CONSUMER
    assert gw.hosts() == ["a:1", "b:9092"]
    assert gw.max_wait_ms == 250


def test_close_closes_dataset_clients():
    gw = Gateway("producer")
    ds = gw.dataset("users")
    with patch.object(ds, "close") as close:
        gw.close()
    close.assert_called_once_with()


def test_none_port_is_treated_as_absent():
    gw = Gateway("producer", "kafka", port=None, max_bytes=None)
    assert gw.port == 9092
    assert gw.max_bytes == 1_048_576
    assert gw.hosts() == ["kafka:9092"]


def test_non_string_client_id():
    assert Gateway("producer", client=5).client == "5"


@pytest.mark.parametrize("role", ["PRODUCER", "Consumer", " producer"])
def test_role_must_match_exactly(role):
    with pytest.raises(InvalidRole):
        Gateway(role)
