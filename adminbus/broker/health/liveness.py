"""
Node liveness checks.

A liveness check answers whether a node is still reachable. Checks are
plain coroutines taking a Node, so the reaper can be given any liveness check
(HTTP health endpoint, SWIM membership, a test double). The default check
opens a TCP connection to the node's address.
"""

import asyncio
import functools
from typing import Awaitable, Callable

from adminbus.broker.models import Node


LivenessCheck = Callable[[Node], Awaitable[bool]]


async def tcp_liveness_check(
    node: Node,
    timeout: float = 2.0,
) -> bool:
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(node.host, node.port),
            timeout=timeout,
        )

    except (asyncio.TimeoutError, OSError):
        return False

    writer.close()

    try:
        await writer.wait_closed()

    except OSError:
        # The node accepted the connection, so it is alive even if the close races a reset.
        pass

    return True


def create_tcp_liveness_check(timeout: float) -> LivenessCheck:
    return functools.partial(tcp_liveness_check, timeout=timeout)
