"""
Admin Message Broker - sends and receives AdminMessages across the cluster.

The broker wires the subscription lifecycle (join, deferred cleanup) and
the MessageRouter together behind the send/receive entry points used by
application code and by the transport's inbound delivery.

Lifecycle:
    broker = AdminMessageBroker(own_node, env=env, transport=transport)
    await broker.start()      # join the topic, schedule the cleanup
    await broker.broadcast(PreventSubscriptionCleanup())
    await broker.close()

Without a topic or a transport the broker runs degraded: messages are
still delivered locally, nothing is published or received remotely.
"""

from urllib.parse import urlencode, urljoin

from adminbus.broker.env import Env
from adminbus.broker.health import LivenessCheck, create_tcp_liveness_check
from adminbus.broker.joiner import BootstrapJoiner, JoinResult
from adminbus.broker.logging_models import (
    BrokerError,
    BrokerInfo,
)
from adminbus.broker.models import (
    AdminMessage,
    AdminPayload,
    Node,
)
from adminbus.broker.reaper import SubscriptionReaper
from adminbus.broker.registry import SubscriptionRegistry
from adminbus.broker.router import ApplicationEventHandler, MessageRouter
from adminbus.broker.transport import EnvelopeVerifier, Transport
from adminbus.logging import Logger, LoggingConfig


NOT_READY_MESSAGE = (
    'WARNING: Environment variable "ADMIN_MESSAGE_TOPIC" not defined or no transport given. '
    "The node could not be subscribed as AdminMessage listener. "
    "No AdminMessages will be received by this node."
)


def build_callback_url(
    node_url: str | None,
    endpoint_path: str,
    access_token: str | None,
    access_token_param: str = "access_token",
) -> str | None:
    """
    The URL the transport pushes admin messages of this node to, or None
    if either the node URL or the access token is unknown.
    """
    if node_url is None or access_token is None:
        return None

    return urljoin(node_url, endpoint_path) + "?" + urlencode({access_token_param: access_token})


class AdminMessageBroker:

    def __init__(
        self,
        own_node: Node,
        env: Env | None = None,
        transport: Transport | None = None,
        verifier: EnvelopeVerifier | None = None,
        liveness_check: LivenessCheck | None = None,
        logger: Logger | None = None,
    ):
        if env is None:
            env = Env()

        self._own_node = own_node
        self._env = env

        LoggingConfig().update(log_level=env.ADMIN_MESSAGE_LOG_LEVEL)

        self._logger = logger or Logger()
        if env.ADMIN_MESSAGE_LOG_PATH:
            self._logger.configure(path=env.ADMIN_MESSAGE_LOG_PATH)

        self._topic = env.ADMIN_MESSAGE_TOPIC if transport is not None else None
        self._transport = transport if self._topic is not None else None

        self._own_callback_url = build_callback_url(
            env.NODE_URL or own_node.url,
            env.ADMIN_MESSAGE_ENDPOINT,
            env.ADMIN_MESSAGE_JWT,
            access_token_param=env.ADMIN_MESSAGE_ACCESS_TOKEN_PARAM,
        )

        if liveness_check is None:
            liveness_check = create_tcp_liveness_check(env.get_liveness_timeout())

        self._router = MessageRouter(
            own_node,
            prevent_cleanup=self.prevent_subscription_cleanup,
            transport=self._transport,
            topic=self._topic,
            verifier=verifier if self._transport is not None else None,
            max_message_size=env.ADMIN_MESSAGE_MAX_SIZE,
            logger=self._logger,
        )

        self._registry: SubscriptionRegistry | None = None
        self._joiner: BootstrapJoiner | None = None
        self._reaper: SubscriptionReaper | None = None

        if self.is_ready:
            self._registry = SubscriptionRegistry(
                self._transport,
                self._topic,
                own_node,
                protocol=env.ADMIN_MESSAGE_PROTOCOL,
                endpoint_path=env.ADMIN_MESSAGE_ENDPOINT,
                logger=self._logger,
            )

            self._joiner = BootstrapJoiner(
                self._registry,
                own_node,
                self._own_callback_url,
                logger=self._logger,
            )

            cleanup_config = env.get_cleanup_config()
            self._reaper = SubscriptionReaper(
                self._registry,
                own_node,
                liveness_check,
                self.broadcast,
                base_delay=cleanup_config['base_delay'],
                release_grace=cleanup_config['release_grace'],
                cluster_size=cleanup_config['cluster_size'],
                logger=self._logger,
            )

        self._join_result: JoinResult | None = None

    @property
    def own_node(self) -> Node:
        return self._own_node

    @property
    def own_callback_url(self) -> str | None:
        return self._own_callback_url

    @property
    def topic(self) -> str | None:
        return self._topic

    @property
    def is_ready(self) -> bool:
        return self._topic is not None and self._transport is not None

    @property
    def router(self) -> MessageRouter:
        return self._router

    @property
    def reaper(self) -> SubscriptionReaper | None:
        return self._reaper

    async def start(self) -> JoinResult:
        """
        Join the admin message topic and schedule the deferred cleanup of
        stale subscriptions. Never raises; a broker which can not join keeps
        delivering messages locally. Starting twice returns the first result.
        """
        if self._join_result is not None:
            return self._join_result

        await self._log_info("Initializing AdminMessageBroker")
        await self._log_info(f"TOPIC resolved as: {self._topic}")

        if not self.is_ready:
            await self._log_error(NOT_READY_MESSAGE)
            self._join_result = JoinResult(error="broker not ready")
            return self._join_result

        self._join_result = await self._joiner.join()

        if self._join_result.joined:
            await self._reaper.schedule(self._join_result.snapshot)

        return self._join_result

    async def send_message(self, message: AdminMessage) -> bool:
        return await self._router.send(message)

    async def broadcast(
        self,
        payload: AdminPayload,
        include_local_node: bool = False,
    ) -> bool:
        return await self.send_message(
            AdminMessage(
                payload=payload,
                source=self._own_node,
                broadcast_include_local_node=include_local_node,
            )
        )

    async def send_to(
        self,
        node: Node,
        payload: AdminPayload,
    ) -> bool:
        return await self.send_message(
            AdminMessage(
                payload=payload,
                source=self._own_node,
                destination=node,
            )
        )

    async def receive_raw(self, data: bytes | None) -> bool:
        return await self._router.receive_raw(data)

    async def receive_message(self, data: str | bytes) -> bool:
        return await self._router.receive_message(data)

    def on(self, name: str, handler: ApplicationEventHandler) -> None:
        self._router.on(name, handler)

    def off(self, name: str, handler: ApplicationEventHandler) -> None:
        self._router.off(name, handler)

    def prevent_subscription_cleanup(self) -> None:
        """Skip the pending subscription cleanup and release its resources."""
        if self._reaper is not None:
            self._reaper.release()

    async def close(self) -> None:
        self.prevent_subscription_cleanup()
        await self._router.drain()
        await self._logger.close()

    # =========================================================================
    # Logging Helpers
    # =========================================================================

    def _get_log_context(self) -> dict:
        return {
            "node_host": self._own_node.host,
            "node_port": self._own_node.port,
            "topic": self._topic or "",
        }

    async def _log_info(self, message: str) -> None:
        await self._logger.log(BrokerInfo(message=message, **self._get_log_context()))

    async def _log_error(self, message: str) -> None:
        await self._logger.log(BrokerError(message=message, **self._get_log_context()))
