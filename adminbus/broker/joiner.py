"""
Bootstrap Joiner - subscribes the own node to the admin message topic.

Joining is check-then-subscribe: the topic's subscriptions are listed and
the own callback URL is only subscribed if no subscription for it exists
yet (which happens when a node re-uses the address of a previous node).
The check is not atomic against the transport. Duplicate subscriptions
are removed later by the SubscriptionReaper.
"""

from dataclasses import dataclass

from adminbus.broker.errors import SubscriptionListingError
from adminbus.broker.logging_models import (
    BrokerError,
    BrokerInfo,
    BrokerWarning,
)
from adminbus.broker.models import Node, Subscription
from adminbus.broker.registry import SubscriptionRegistry
from adminbus.logging import Logger


SUBSCRIPTION_ERROR_MESSAGE = (
    "The node could not be subscribed as AdminMessage listener. "
    "No AdminMessages will be received by this node."
)


@dataclass(slots=True)
class JoinResult:
    """Outcome of a join attempt."""

    joined: bool = False
    subscribed: bool = False
    snapshot: list[Subscription] | None = None
    subscription: Subscription | None = None
    error: str | None = None


class BootstrapJoiner:

    def __init__(
        self,
        registry: SubscriptionRegistry,
        own_node: Node,
        callback_url: str | None,
        logger: Logger | None = None,
    ):
        self._registry = registry
        self._own_node = own_node
        self._callback_url = callback_url
        self._logger = logger or Logger()

    async def join(self) -> JoinResult:
        """
        Ensure the own node has a subscription to the topic.

        Never raises. On success the returned snapshot holds the
        subscriptions observed before joining, for the reaper to verify.
        """
        await self._log_info(f"Subscribing the NODE={self._own_node.url}")

        if self._callback_url is None:
            await self._log_warning(
                f"No messaging node URL provided. {SUBSCRIPTION_ERROR_MESSAGE}"
            )
            return JoinResult(error="missing callback url")

        try:
            snapshot = await self._registry.list_relevant_subscriptions()

        except SubscriptionListingError as err:
            await self._log_error(f"{SUBSCRIPTION_ERROR_MESSAGE} {err}")
            return JoinResult(error=str(err))

        await self._log_info(
            f"Subscriptions have been loaded [{len(snapshot)}] for NODE={self._own_node.url}"
        )

        if any(
            subscription.endpoint == self._callback_url
            for subscription in snapshot
        ):
            await self._log_info(
                f"NODE={self._own_node.url} is already subscribed into TOPIC={self._registry.topic}"
            )

            return JoinResult(
                joined=True,
                snapshot=snapshot,
            )

        await self._log_info(
            f"Current node is not subscribed yet, subscribing NODE={self._own_node.url} into TOPIC={self._registry.topic}"
        )

        try:
            subscription = await self._registry.subscribe(self._callback_url)

        except Exception as err:
            await self._log_error(f"{SUBSCRIPTION_ERROR_MESSAGE} {err}")
            return JoinResult(error=str(err))

        await self._log_info(
            f"Subscription succeeded for NODE={self._own_node.url} into TOPIC={self._registry.topic}"
        )

        return JoinResult(
            joined=True,
            subscribed=True,
            snapshot=snapshot,
            subscription=subscription,
        )

    # =========================================================================
    # Logging Helpers
    # =========================================================================

    def _get_log_context(self) -> dict:
        return {
            "node_host": self._own_node.host,
            "node_port": self._own_node.port,
            "topic": self._registry.topic,
        }

    async def _log_info(self, message: str) -> None:
        await self._logger.log(BrokerInfo(message=message, **self._get_log_context()))

    async def _log_warning(self, message: str) -> None:
        await self._logger.log(BrokerWarning(message=message, **self._get_log_context()))

    async def _log_error(self, message: str) -> None:
        await self._logger.log(BrokerError(message=message, **self._get_log_context()))
