"""Shared test fixtures for all test modules."""

from collections.abc import Iterator

import pytest
from tests.fakes import FakeClock, RecordingSender, RecordingTransport

from vigilant.attributes.storage import (
    ContextAttributeStorage,
    get_attribute_storage,
    set_attribute_storage,
)
from vigilant.core.config import Config
from vigilant.core.errors import TransportError


@pytest.fixture
def transport() -> RecordingTransport:
    """Transport that records payloads and always succeeds."""
    return RecordingTransport()


@pytest.fixture
def failing_transport() -> RecordingTransport:
    """Transport whose every post fails with a TransportError."""
    return RecordingTransport(fail_with=TransportError("collector unreachable"))


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> Config:
    """Valid configuration with short intervals for fast tests."""
    return Config(
        name="test-service",
        token="test-token",
        batch_interval=0.01,
        metrics_interval=60.0,
        metrics_process_interval=0.01,
        sender_interval=0.01,
    )


@pytest.fixture(autouse=True)
def attribute_storage() -> Iterator[ContextAttributeStorage]:
    """Give every test a fresh ambient attribute storage."""
    previous = get_attribute_storage()
    storage = ContextAttributeStorage()
    set_attribute_storage(storage)
    yield storage
    set_attribute_storage(previous)


@pytest.fixture(autouse=True)
def reset_global_agent() -> Iterator[None]:
    """Shut down any process-wide agent a test left behind."""
    yield
    from vigilant import agent

    if agent._instance is not None:
        agent.shutdown()
