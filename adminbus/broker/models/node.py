from __future__ import annotations

from typing import Awaitable, Callable
from urllib.parse import urlsplit

import msgspec

from adminbus.broker.errors import MalformedEndpointError


DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


class Node(msgspec.Struct, frozen=True):
    """
    A cluster member, identified by its address.

    Nodes compare by (host, port) only, so a node rebuilt from a
    subscription endpoint equals the node that created the subscription.
    """

    host: str
    port: int

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_url(cls, url: str) -> Node:
        try:
            parsed = urlsplit(url)
            port = parsed.port

        except ValueError as err:
            raise MalformedEndpointError(
                f"Endpoint {url} is not a valid URL: {err}"
            ) from err

        if not parsed.hostname:
            raise MalformedEndpointError(f"Endpoint {url} has no host")

        if port is None:
            port = DEFAULT_PORTS.get(parsed.scheme.lower())

        if port is None:
            raise MalformedEndpointError(
                f"Endpoint {url} has no port and no default port for scheme '{parsed.scheme}'"
            )

        return cls(host=parsed.hostname, port=port)

    async def is_alive(
        self,
        check: Callable[[Node], Awaitable[bool]],
    ) -> bool:
        return await check(self)
