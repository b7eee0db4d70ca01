"""
Subscription Registry - the broker's view of the topic's subscriptions.

Lists the subscriptions relevant to the admin message broker, following
the transport's continuation tokens, and creates or removes subscriptions.
The registry never holds transport state of its own; every listing is a
fresh snapshot.
"""

from adminbus.broker.errors import SubscriptionListingError
from adminbus.broker.logging_models import (
    BrokerDebug,
    BrokerError,
    BrokerWarning,
)
from adminbus.broker.models import Node, Subscription
from adminbus.broker.transport import Transport
from adminbus.logging import Logger


class SubscriptionRegistry:
    """
    Relevant subscriptions are those using the broker's protocol and
    pointing to an admin message endpoint. All others are invisible here.
    """

    def __init__(
        self,
        transport: Transport,
        topic: str,
        own_node: Node,
        protocol: str = "http",
        endpoint_path: str = "/admin/messages",
        logger: Logger | None = None,
    ):
        self._transport = transport
        self._topic = topic
        self._own_node = own_node
        self._protocol = protocol
        self._endpoint_path = endpoint_path
        self._logger = logger or Logger()

    @property
    def topic(self) -> str:
        return self._topic

    def is_relevant(self, subscription: Subscription) -> bool:
        return (
            subscription.protocol == self._protocol
            and self._endpoint_path in subscription.endpoint
        )

    async def list_relevant_subscriptions(self) -> list[Subscription]:
        """
        Load all relevant subscriptions of the topic.

        Pages are requested until the transport returns no continuation
        token. A failure on any page fails the whole listing.

        Raises:
            SubscriptionListingError: if the transport fails on any page.
        """
        subscriptions: list[Subscription] = []
        next_token: str | None = None
        pages = 0

        while True:
            try:
                page = await self._transport.list_subscriptions(
                    self._topic,
                    next_token=next_token,
                )

            except Exception as err:
                raise SubscriptionListingError(
                    f"Listing subscriptions of topic {self._topic} failed on page {pages + 1}: {err}"
                ) from err

            pages += 1
            subscriptions.extend(
                subscription
                for subscription in page.subscriptions
                if self.is_relevant(subscription)
            )

            next_token = page.next_token
            if next_token is None:
                break

        await self._log_debug(
            f"Loaded {len(subscriptions)} relevant subscriptions from {pages} pages"
        )

        return subscriptions

    async def subscribe(self, endpoint: str) -> Subscription:
        return await self._transport.subscribe(
            self._topic,
            self._protocol,
            endpoint,
        )

    async def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove a subscription from the topic.

        Subscriptions pending confirmation are never removed, the transport
        expires them on its own. Returns True if the subscription was removed.
        """
        if subscription.is_pending:
            await self._log_warning(
                f"Could not remove subscription ({subscription.endpoint}) because it's pending for confirmation. "
                "It will be removed automatically by the transport."
            )
            return False

        try:
            await self._transport.unsubscribe(subscription.subscription_id)

        except Exception as err:
            await self._log_error(
                f"Error un-subscribing endpoint {subscription.endpoint}: {err}"
            )
            return False

        await self._log_debug(
            f"Endpoint {subscription.endpoint} has been successfully un-subscribed."
        )

        return True

    # =========================================================================
    # Logging Helpers
    # =========================================================================

    def _get_log_context(self) -> dict:
        return {
            "node_host": self._own_node.host,
            "node_port": self._own_node.port,
            "topic": self._topic,
        }

    async def _log_debug(self, message: str) -> None:
        await self._logger.log(BrokerDebug(message=message, **self._get_log_context()))

    async def _log_warning(self, message: str) -> None:
        await self._logger.log(BrokerWarning(message=message, **self._get_log_context()))

    async def _log_error(self, message: str) -> None:
        await self._logger.log(BrokerError(message=message, **self._get_log_context()))
