"""
Message Router - decides where an admin message is handled.

Outbound messages are published to the topic unless they target the own
node, and are always offered to local delivery as well, so a node observes
its own messages even when publishing fails. Inbound messages are decoded
and offered to local delivery, except for broadcasts of the own node coming
back through the transport, which were already offered to local delivery
when sent. Local delivery follows one rule set:

    destination == own node                      -> handle
    broadcast from another node                  -> handle
    broadcast from the own node, include local   -> handle
    broadcast from the own node, exclude local   -> skip
    destination is another node                  -> skip
"""

import asyncio
import inspect
from collections import defaultdict
from typing import Any, Callable

import msgspec

from adminbus.broker.codec import decode_message, encode_message
from adminbus.broker.errors import (
    EnvelopeVerificationError,
    MessageTooLargeError,
    MissingSourceError,
)
from adminbus.broker.logging_models import (
    RouterDebug,
    RouterError,
    RouterWarning,
)
from adminbus.broker.models import (
    AdminMessage,
    ApplicationEvent,
    Node,
    PreventSubscriptionCleanup,
)
from adminbus.broker.transport import EnvelopeVerifier, Transport
from adminbus.logging import Logger


MAX_MESSAGE_SIZE = 256 * 1024

ApplicationEventHandler = Callable[[ApplicationEvent], Any]


def should_handle_locally(message: AdminMessage, own_node: Node) -> bool:
    if message.source is None:
        raise MissingSourceError("The source node of the AdminMessage must be defined.")

    if message.destination is not None:
        return message.destination == own_node

    return message.source != own_node or message.broadcast_include_local_node


class MessageRouter:

    def __init__(
        self,
        own_node: Node,
        prevent_cleanup: Callable[[], Any],
        transport: Transport | None = None,
        topic: str | None = None,
        verifier: EnvelopeVerifier | None = None,
        max_message_size: int = MAX_MESSAGE_SIZE,
        logger: Logger | None = None,
    ):
        self._own_node = own_node
        self._prevent_cleanup = prevent_cleanup
        self._transport = transport
        self._topic = topic
        self._verifier = verifier
        self._max_message_size = max_message_size
        self._logger = logger or Logger()

        self._event_handlers: dict[str, list[ApplicationEventHandler]] = defaultdict(list)
        self._pending_publishes: set[asyncio.Task] = set()

    @property
    def can_publish(self) -> bool:
        return self._transport is not None and self._topic is not None

    @property
    def pending_publishes(self) -> int:
        return len(self._pending_publishes)

    def on(self, name: str, handler: ApplicationEventHandler) -> None:
        self._event_handlers[name].append(handler)

    def off(self, name: str, handler: ApplicationEventHandler) -> None:
        handlers = self._event_handlers.get(name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    # =========================================================================
    # Send path
    # =========================================================================

    async def send(self, message: AdminMessage) -> bool:
        """
        Publish the message to the topic unless it targets the own node,
        then offer it to local delivery. Returns whether it was handled
        locally. The remote outcome is fire-and-forget.

        Raises:
            MissingSourceError: if the message has no source node.
            MessageTooLargeError: if the serialized message exceeds the
                maximum message size. It is then neither published nor
                delivered locally.
        """
        if message.source is None:
            raise MissingSourceError("The source node of the AdminMessage must be defined.")

        if message.destination != self._own_node:
            try:
                data = encode_message(message)

            except (msgspec.EncodeError, TypeError, ValueError) as err:
                await self._log_error(
                    f"Error while serializing AdminMessage of type {message.kind} prior to send it: {err}",
                    message.kind,
                )

            else:
                if len(data) > self._max_message_size:
                    raise MessageTooLargeError(len(data), self._max_message_size)

                await self._publish_later(data.decode(), message.kind)

        return await self.deliver(message)

    async def _publish_later(self, data: str, message_kind: str) -> None:
        if not self.can_publish:
            await self._log_error(
                f"The AdminMessage can not be sent as the MessageBroker is not ready. Message was: {data}",
                message_kind,
            )
            return

        task = asyncio.create_task(self._publish(data, message_kind))
        self._pending_publishes.add(task)
        task.add_done_callback(self._pending_publishes.discard)

    async def _publish(self, data: str, message_kind: str) -> None:
        try:
            message_id = await self._transport.publish(self._topic, data)

        except Exception as err:
            await self._log_error(f"Error sending message: {data} - {err}", message_kind)
            return

        await self._log_debug(
            f"Message {message_id} has been sent with following content: {data}",
            message_kind,
        )

    async def drain(self) -> None:
        """Wait for every publish in flight."""
        if self._pending_publishes:
            await asyncio.gather(
                *list(self._pending_publishes),
                return_exceptions=True,
            )

    # =========================================================================
    # Receive path
    # =========================================================================

    async def receive_raw(self, data: bytes | None) -> bool:
        """
        Accept bytes pushed by the transport. Without a verifier, the bytes
        are taken as a serialized AdminMessage (direct delivery) and routed
        like any other message.

        With a verifier, the bytes are a transport envelope. Broadcasts of
        the own node arriving this way are echoes of its own publishes,
        which the send path already offered to local delivery, and are
        ignored.
        """
        if not data:
            await self._log_error("No bytes given for receiving the message.")
            return False

        if self._verifier is None:
            return await self.receive_message(data)

        try:
            verified = await self._verifier.verify(data)

        except EnvelopeVerificationError as err:
            await self._log_error(f"Error while verifying AdminMessage envelope: {err}")
            return False

        if verified is None:
            await self._log_debug("Envelope carries no AdminMessage, ignoring it")
            return False

        message = await self._decode(verified)
        if message is None:
            return False

        if message.is_broadcast and message.source == self._own_node:
            await self._log_debug("Ignoring echo of an AdminMessage broadcast by this node", message.kind)
            return False

        return await self.deliver(message)

    async def receive_message(self, data: str | bytes) -> bool:
        """
        Decode a serialized AdminMessage and offer it to local delivery.
        Failures are logged and never raised to the transport.
        """
        message = await self._decode(data)
        if message is None:
            return False

        return await self.deliver(message)

    async def _decode(self, data: str | bytes) -> AdminMessage | None:
        try:
            message = decode_message(data)

        except msgspec.DecodeError as err:
            await self._log_error(f"Error while de-serializing AdminMessage {data!r} : {err}")
            return None

        if message.source is None:
            await self._log_error(
                f"Dropping AdminMessage {data!r}: the source node of the AdminMessage must be defined.",
                message.kind,
            )
            return None

        return message

    async def deliver(self, message: AdminMessage) -> bool:
        """
        Handle the message locally if the routing rules say so. Returns
        whether handling was attempted. Handling failures are logged.

        Raises:
            MissingSourceError: if the message has no source node.
        """
        if not should_handle_locally(message, self._own_node):
            return False

        try:
            await self._handle(message)

        except Exception as err:
            await self._log_error(
                f"Error while trying to handle AdminMessage {message} : {err}",
                message.kind,
            )

        return True

    async def _handle(self, message: AdminMessage) -> None:
        match message.payload:
            case PreventSubscriptionCleanup():
                self._prevent_cleanup()

            case ApplicationEvent() as event:
                handlers = list(self._event_handlers.get(event.name, []))
                if not handlers:
                    await self._log_warning(
                        f"No handler registered for application event {event.name}",
                        message.kind,
                    )

                for handler in handlers:
                    result = handler(event)
                    if inspect.isawaitable(result):
                        await result

    # =========================================================================
    # Logging Helpers
    # =========================================================================

    def _get_log_context(self, message_kind: str | None) -> dict:
        return {
            "node_host": self._own_node.host,
            "node_port": self._own_node.port,
            "message_kind": message_kind or "unknown",
        }

    async def _log_debug(self, message: str, message_kind: str | None = None) -> None:
        await self._logger.log(RouterDebug(message=message, **self._get_log_context(message_kind)))

    async def _log_warning(self, message: str, message_kind: str | None = None) -> None:
        await self._logger.log(RouterWarning(message=message, **self._get_log_context(message_kind)))

    async def _log_error(self, message: str, message_kind: str | None = None) -> None:
        await self._logger.log(RouterError(message=message, **self._get_log_context(message_kind)))
