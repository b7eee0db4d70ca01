"""
Admin message kinds.

The payload of an AdminMessage is a closed, tagged union. Each kind is
encoded with a "kind" field so peers can decode it without knowing the
sender's types, and the MessageRouter dispatches on the kind with a
single match statement.
"""

from typing import Any

import msgspec

from .node import Node


class PreventSubscriptionCleanup(
    msgspec.Struct,
    tag="prevent_subscription_cleanup",
    tag_field="kind",
):
    """
    Tells every other node that the stale subscription cleanup was already
    done, so their own pending cleanup can be skipped.
    """
    pass


class ApplicationEvent(
    msgspec.Struct,
    tag="application_event",
    tag_field="kind",
    kw_only=True,
):
    """A named application control event, handled by registered callbacks."""
    name: str
    data: dict[str, Any] = msgspec.field(default_factory=dict)


AdminPayload = PreventSubscriptionCleanup | ApplicationEvent


class AdminMessage(msgspec.Struct, kw_only=True):
    payload: AdminPayload
    source: Node | None = None
    destination: Node | None = None
    broadcast_include_local_node: bool = False

    @property
    def kind(self) -> str:
        return type(self.payload).__name__

    @property
    def is_broadcast(self) -> bool:
        return self.destination is None
