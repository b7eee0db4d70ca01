"""
Shared fixtures for admin message broker tests.
"""

import pytest

from adminbus.broker import Env, Node
from adminbus.broker.models import ApplicationEvent

from tests.unit.broker.mocks import EventRecorder, MockTransport


TOPIC = "admin-topic"
TOKEN = "secret-token"


@pytest.fixture
def own_node() -> Node:
    return Node(host="10.0.0.1", port=8080)


@pytest.fixture
def peer_node() -> Node:
    return Node(host="10.0.0.2", port=8080)


@pytest.fixture
def env() -> Env:
    return Env(
        ADMIN_MESSAGE_TOPIC=TOPIC,
        ADMIN_MESSAGE_JWT=TOKEN,
        INSTANCE_COUNT=3,
        ADMIN_MESSAGE_LOG_LEVEL="critical",
    )


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def event() -> ApplicationEvent:
    return ApplicationEvent(name="stop-indexing", data={"space": "abc"})
