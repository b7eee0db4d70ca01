from enum import Enum

import msgspec


class SubscriptionStatus(Enum):
    CONFIRMED = "confirmed"
    PENDING_CONFIRMATION = "pending_confirmation"


class Subscription(msgspec.Struct, kw_only=True):
    endpoint: str
    protocol: str
    subscription_id: str
    topic: str | None = None
    status: SubscriptionStatus = SubscriptionStatus.CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.status == SubscriptionStatus.PENDING_CONFIRMATION


class SubscriptionPage(msgspec.Struct, kw_only=True):
    subscriptions: list[Subscription] = msgspec.field(default_factory=list)
    next_token: str | None = None
