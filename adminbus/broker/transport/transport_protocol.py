from typing import Protocol

from adminbus.broker.models import Subscription, SubscriptionPage


class Transport(Protocol):
    """
    The publish/subscribe primitives the broker needs from a topic based
    fan-out service. Every operation may raise; the broker logs and
    abandons failed calls instead of retrying them.
    """

    async def publish(self, topic: str, message: str) -> str: ...

    async def subscribe(
        self,
        topic: str,
        protocol: str,
        endpoint: str,
    ) -> Subscription: ...

    async def list_subscriptions(
        self,
        topic: str,
        next_token: str | None = None,
    ) -> SubscriptionPage: ...

    async def unsubscribe(self, subscription_id: str) -> None: ...


class EnvelopeVerifier(Protocol):
    """
    Unwraps and verifies the envelope a transport pushes to an endpoint.

    Returns the admin message carried by the envelope, or None for
    envelopes which carry no admin message. Raises
    EnvelopeVerificationError for envelopes which fail verification.
    """

    async def verify(self, data: bytes) -> str | None: ...
