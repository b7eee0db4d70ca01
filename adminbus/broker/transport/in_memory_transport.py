"""
In-Memory Transport - a process-local topic based fan-out.

Implements the Transport protocol for single-process clusters and tests.
Subscriptions are confirmed immediately when a receiver is registered for
their endpoint, otherwise they stay pending confirmation, the same way a
push transport waits for an endpoint to acknowledge the subscription.
Published messages are wrapped in a NotificationEnvelope and pushed to
every confirmed subscription's receiver.
"""

import asyncio
import time
import uuid
from collections import defaultdict
from typing import Awaitable, Callable

from adminbus.broker.errors import TransportError
from adminbus.broker.models import (
    Subscription,
    SubscriptionPage,
    SubscriptionStatus,
)

from .envelope import (
    NOTIFICATION,
    SUBSCRIPTION_CONFIRMATION,
    NotificationEnvelope,
)


EndpointReceiver = Callable[[bytes], Awaitable[object]]


class InMemoryTransport:

    def __init__(self, page_size: int = 100) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self._page_size = page_size
        self._topics: dict[str, dict[str, Subscription]] = {}
        self._receivers: dict[str, EndpointReceiver] = {}
        self._published: dict[str, list[str]] = defaultdict(list)
        self.delivery_errors: list[BaseException] = []

    def create_topic(self, topic: str) -> str:
        self._topics.setdefault(topic, {})
        return topic

    def register_endpoint(
        self,
        endpoint: str,
        receiver: EndpointReceiver,
    ) -> None:
        self._receivers[endpoint] = receiver

        for subscriptions in self._topics.values():
            for subscription_id, subscription in list(subscriptions.items()):
                if subscription.endpoint == endpoint and subscription.is_pending:
                    subscriptions[subscription_id] = Subscription(
                        endpoint=subscription.endpoint,
                        protocol=subscription.protocol,
                        subscription_id=subscription_id,
                        topic=subscription.topic,
                    )

    def remove_endpoint(self, endpoint: str) -> None:
        self._receivers.pop(endpoint, None)

    def published(self, topic: str) -> list[str]:
        return list(self._published.get(topic, []))

    async def publish(self, topic: str, message: str) -> str:
        subscriptions = self._get_topic(topic)
        message_id = uuid.uuid4().hex
        self._published[topic].append(message)

        envelope = NotificationEnvelope(
            type=NOTIFICATION,
            message_id=message_id,
            topic=topic,
            message=message,
            timestamp=time.time(),
        ).dump()

        receivers = [
            self._receivers[subscription.endpoint]
            for subscription in subscriptions.values()
            if not subscription.is_pending and subscription.endpoint in self._receivers
        ]

        results = await asyncio.gather(
            *[receiver(envelope) for receiver in receivers],
            return_exceptions=True,
        )

        self.delivery_errors.extend(
            result for result in results if isinstance(result, BaseException)
        )

        return message_id

    async def subscribe(
        self,
        topic: str,
        protocol: str,
        endpoint: str,
    ) -> Subscription:
        subscriptions = self._get_topic(topic)
        subscription_id = f"{topic}:{uuid.uuid4().hex}"

        receiver = self._receivers.get(endpoint)
        status = (
            SubscriptionStatus.CONFIRMED
            if receiver
            else SubscriptionStatus.PENDING_CONFIRMATION
        )

        subscription = Subscription(
            endpoint=endpoint,
            protocol=protocol,
            subscription_id=subscription_id,
            topic=topic,
            status=status,
        )

        subscriptions[subscription_id] = subscription

        if receiver:
            await receiver(
                NotificationEnvelope(
                    type=SUBSCRIPTION_CONFIRMATION,
                    message_id=uuid.uuid4().hex,
                    topic=topic,
                    timestamp=time.time(),
                ).dump()
            )

        return subscription

    async def list_subscriptions(
        self,
        topic: str,
        next_token: str | None = None,
    ) -> SubscriptionPage:
        subscriptions = list(self._get_topic(topic).values())

        offset = 0
        if next_token is not None:
            try:
                offset = int(next_token)

            except ValueError as err:
                raise TransportError(f"Invalid next token {next_token}") from err

        page_end = offset + self._page_size

        return SubscriptionPage(
            subscriptions=subscriptions[offset:page_end],
            next_token=str(page_end) if page_end < len(subscriptions) else None,
        )

    async def unsubscribe(self, subscription_id: str) -> None:
        for subscriptions in self._topics.values():
            if subscriptions.pop(subscription_id, None):
                return

        raise TransportError(f"Subscription {subscription_id} does not exist")

    def _get_topic(self, topic: str) -> dict[str, Subscription]:
        subscriptions = self._topics.get(topic)
        if subscriptions is None:
            raise TransportError(f"Topic {topic} does not exist")

        return subscriptions
