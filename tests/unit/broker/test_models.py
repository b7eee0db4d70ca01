"""
Tests for Node, AdminMessage and the message codec.
"""

import msgspec
import pytest

from adminbus.broker.codec import decode_message, encode_message
from adminbus.broker.errors import MalformedEndpointError
from adminbus.broker.models import (
    AdminMessage,
    ApplicationEvent,
    Node,
    PreventSubscriptionCleanup,
    Subscription,
    SubscriptionStatus,
)


class TestNode:

    def test_nodes_compare_by_address(self) -> None:
        assert Node(host="10.0.0.1", port=8080) == Node(host="10.0.0.1", port=8080)
        assert Node(host="10.0.0.1", port=8080) != Node(host="10.0.0.1", port=8081)
        assert hash(Node(host="10.0.0.1", port=8080)) == hash(Node(host="10.0.0.1", port=8080))

    def test_from_url_with_port(self) -> None:
        node = Node.from_url("http://10.0.0.1:8080/admin/messages?access_token=abc")

        assert node == Node(host="10.0.0.1", port=8080)
        assert node.url == "http://10.0.0.1:8080"

    def test_from_url_uses_default_ports(self) -> None:
        assert Node.from_url("http://node-1.internal/admin/messages").port == 80
        assert Node.from_url("https://node-1.internal/admin/messages").port == 443

    @pytest.mark.parametrize(
        "endpoint",
        [
            "not-a-url/admin/messages",
            "ftp://10.0.0.1/admin/messages",
            "http://10.0.0.1:notaport/admin/messages",
            "",
        ],
    )
    def test_from_url_rejects_malformed_endpoints(self, endpoint: str) -> None:
        with pytest.raises(MalformedEndpointError):
            Node.from_url(endpoint)

    @pytest.mark.asyncio
    async def test_is_alive_delegates_to_check(self) -> None:
        checked: list[Node] = []

        async def check(node: Node) -> bool:
            checked.append(node)
            return True

        node = Node(host="10.0.0.1", port=8080)

        assert await node.is_alive(check) is True
        assert checked == [node]


class TestAdminMessage:

    def test_broadcast_has_no_destination(self) -> None:
        source = Node(host="10.0.0.1", port=8080)

        assert AdminMessage(payload=PreventSubscriptionCleanup(), source=source).is_broadcast is True
        assert AdminMessage(
            payload=PreventSubscriptionCleanup(),
            source=source,
            destination=source,
        ).is_broadcast is False

    def test_kind_names_the_payload(self) -> None:
        message = AdminMessage(payload=ApplicationEvent(name="stop-indexing"))

        assert message.kind == "ApplicationEvent"

    def test_pending_subscription(self) -> None:
        subscription = Subscription(
            endpoint="http://10.0.0.1:8080/admin/messages",
            protocol="http",
            subscription_id="sub-1",
            status=SubscriptionStatus.PENDING_CONFIRMATION,
        )

        assert subscription.is_pending is True


class TestCodec:

    def test_prevent_cleanup_is_tagged(self) -> None:
        message = AdminMessage(
            payload=PreventSubscriptionCleanup(),
            source=Node(host="10.0.0.1", port=8080),
        )

        encoded = msgspec.json.decode(encode_message(message))

        assert encoded["payload"] == {"kind": "prevent_subscription_cleanup"}
        assert encoded["source"] == {"host": "10.0.0.1", "port": 8080}
        assert decode_message(encode_message(message)) == message

    def test_application_event_keeps_data(self) -> None:
        message = AdminMessage(
            payload=ApplicationEvent(name="stop-indexing", data={"space": "abc", "limit": 3}),
            source=Node(host="10.0.0.1", port=8080),
            destination=Node(host="10.0.0.2", port=8080),
        )

        decoded = decode_message(encode_message(message).decode())

        assert isinstance(decoded.payload, ApplicationEvent)
        assert decoded.payload.data == {"space": "abc", "limit": 3}
        assert decoded.destination == Node(host="10.0.0.2", port=8080)

    def test_unknown_kind_fails_to_decode(self) -> None:
        with pytest.raises(msgspec.DecodeError):
            decode_message('{"payload": {"kind": "shutdown"}, "source": {"host": "a", "port": 1}}')
