import pytest


@pytest.fixture
def default_attributes():
    return {
        "ack_timeout_ms": 1_500,
        "async": False,
        "client": None,
        "partitioner": None,
        "compression_codec": None,
        "hosts": [],
        "max_bytes": 1_048_576,
        "max_send_retries": 3,
        "max_wait_ms": 100,
        "metadata_refresh_interval_ms": 600_000,
        "min_bytes": 1,
        "port": 9092,
        "required_acks": 0,
        "retry_backoff_ms": 100,
        "socket_timeout_ms": 10_000,
    }
