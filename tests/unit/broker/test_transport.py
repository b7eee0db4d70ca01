"""
Tests for the InMemoryTransport and the NotificationEnvelopeVerifier.
"""

import orjson
import pytest

from adminbus.broker.errors import EnvelopeVerificationError, TransportError
from adminbus.broker.transport import (
    InMemoryTransport,
    NotificationEnvelope,
    NotificationEnvelopeVerifier,
)

from tests.unit.broker.conftest import TOPIC


@pytest.fixture
def transport() -> InMemoryTransport:
    transport = InMemoryTransport(page_size=2)
    transport.create_topic(TOPIC)
    return transport


class TestInMemoryTransport:

    @pytest.mark.asyncio
    async def test_subscription_without_receiver_is_pending(
        self,
        transport: InMemoryTransport,
    ) -> None:
        subscription = await transport.subscribe(TOPIC, "http", "http://10.0.0.1:8080/admin/messages")

        assert subscription.is_pending is True

    @pytest.mark.asyncio
    async def test_registering_endpoint_confirms_subscription(
        self,
        transport: InMemoryTransport,
    ) -> None:
        endpoint = "http://10.0.0.1:8080/admin/messages"
        received: list[bytes] = []

        async def receiver(data: bytes) -> None:
            received.append(data)

        await transport.subscribe(TOPIC, "http", endpoint)
        transport.register_endpoint(endpoint, receiver)
        page = await transport.list_subscriptions(TOPIC)

        assert page.subscriptions[0].is_pending is False

        await transport.publish(TOPIC, "hello")

        assert len(received) == 1
        assert orjson.loads(received[0])["message"] == "hello"

    @pytest.mark.asyncio
    async def test_listing_is_paginated(self, transport: InMemoryTransport) -> None:
        for index in range(5):
            await transport.subscribe(TOPIC, "http", f"http://10.0.0.{index}:8080/admin/messages")

        tokens: list[str | None] = [None]
        endpoints: list[str] = []
        next_token = None
        while True:
            page = await transport.list_subscriptions(TOPIC, next_token=next_token)
            endpoints.extend(subscription.endpoint for subscription in page.subscriptions)
            next_token = page.next_token
            if next_token is None:
                break

            tokens.append(next_token)

        assert len(endpoints) == 5
        assert tokens == [None, "2", "4"]

    @pytest.mark.asyncio
    async def test_failing_receiver_is_recorded(self, transport: InMemoryTransport) -> None:
        endpoint = "http://10.0.0.1:8080/admin/messages"

        async def receiver(data: bytes) -> None:
            if orjson.loads(data)["type"] == "Notification":
                raise ConnectionError("endpoint down")

        transport.register_endpoint(endpoint, receiver)
        await transport.subscribe(TOPIC, "http", endpoint)
        await transport.publish(TOPIC, "hello")

        assert len(transport.delivery_errors) == 1
        assert transport.published(TOPIC) == ["hello"]

    @pytest.mark.asyncio
    async def test_unknown_topic_and_subscription(self, transport: InMemoryTransport) -> None:
        with pytest.raises(TransportError):
            await transport.publish("unknown-topic", "hello")

        with pytest.raises(TransportError):
            await transport.unsubscribe("unknown-subscription")

        with pytest.raises(TransportError):
            await transport.list_subscriptions(TOPIC, next_token="not-a-token")

    @pytest.mark.asyncio
    async def test_unsubscribe_removes_subscription(self, transport: InMemoryTransport) -> None:
        subscription = await transport.subscribe(TOPIC, "http", "http://10.0.0.1:8080/admin/messages")

        await transport.unsubscribe(subscription.subscription_id)
        page = await transport.list_subscriptions(TOPIC)

        assert page.subscriptions == []


class TestNotificationEnvelopeVerifier:

    @pytest.mark.asyncio
    async def test_notification_yields_message(self) -> None:
        verifier = NotificationEnvelopeVerifier(TOPIC)
        envelope = NotificationEnvelope(
            type="Notification",
            message_id="m-1",
            topic=TOPIC,
            message="payload",
        )

        assert await verifier.verify(envelope.dump()) == "payload"

    @pytest.mark.asyncio
    async def test_notification_without_message_is_invalid(self) -> None:
        verifier = NotificationEnvelopeVerifier(TOPIC)
        envelope = NotificationEnvelope(type="Notification", message_id="m-1", topic=TOPIC)

        with pytest.raises(EnvelopeVerificationError):
            await verifier.verify(envelope.dump())

    @pytest.mark.asyncio
    async def test_invalid_envelopes(self) -> None:
        verifier = NotificationEnvelopeVerifier(TOPIC)

        with pytest.raises(EnvelopeVerificationError):
            await verifier.verify(b"not json")

        with pytest.raises(EnvelopeVerificationError):
            await verifier.verify(b'{"type": "Notification"}')
