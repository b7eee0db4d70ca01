"""
Stale-Subscription Reaper - removes subscriptions of nodes which are gone.

Subscriptions outlive the nodes which created them, e.g. when a node is
replaced and its successor gets another address. After joining, every node
keeps the snapshot of subscriptions it observed and, after a randomized
deferral, checks each subscribed node and removes the subscriptions of
dead ones. The first node to finish broadcasts PreventSubscriptionCleanup,
so peers which have not reaped yet can skip it.

The deferral is the cleanup base delay plus up to one minute per expected
cluster node, which spreads the probing of a mass restart over time.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from adminbus.broker.errors import MalformedEndpointError
from adminbus.broker.health import LivenessCheck
from adminbus.broker.logging_models import (
    BrokerDebug,
    BrokerError,
    BrokerInfo,
    BrokerWarning,
)
from adminbus.broker.models import (
    AdminPayload,
    Node,
    PreventSubscriptionCleanup,
    Subscription,
)
from adminbus.broker.registry import SubscriptionRegistry
from adminbus.logging import Logger


def compute_cleanup_delay(
    cluster_size: int,
    base_delay: float = 600.0,
) -> float:
    """
    Seconds to defer the cleanup by: base_delay plus a uniform jitter in
    [0, cluster_size) minutes. Cluster sizes below 1 count as 1.
    """
    cluster_size = max(cluster_size, 1)
    return base_delay + random.random() * cluster_size * 60.0


@dataclass(slots=True)
class ReapResult:
    """Endpoints of the snapshot, by what the reaper did with them."""

    removed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    unverified: list[str] = field(default_factory=list)


class CleanupSchedule:
    """
    Owns the deferred one-shot actions of the subscription cleanup.

    Actions are asyncio tasks sleeping until they are due. Cancelling the
    schedule cancels every pending action and can be repeated safely.
    """

    def __init__(self) -> None:
        self._tasks: list[asyncio.Task] = []
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def pending(self) -> int:
        return len([task for task in self._tasks if not task.done()])

    def call_later(
        self,
        delay: float,
        action: Callable[[], Awaitable[object]],
        name: str | None = None,
    ) -> asyncio.Task | None:
        if self._cancelled:
            return None

        task = asyncio.create_task(
            self._run_later(delay, action),
            name=name,
        )
        self._tasks.append(task)

        return task

    def cancel(self) -> None:
        self._cancelled = True
        current_task = asyncio.current_task()

        for task in self._tasks:
            if task is not current_task and not task.done():
                task.cancel()

        self._tasks.clear()

    async def _run_later(
        self,
        delay: float,
        action: Callable[[], Awaitable[object]],
    ):
        await asyncio.sleep(delay)
        await action()


class SubscriptionReaper:

    def __init__(
        self,
        registry: SubscriptionRegistry,
        own_node: Node,
        liveness_check: LivenessCheck,
        broadcast: Callable[[AdminPayload], Awaitable[object]],
        base_delay: float = 600.0,
        release_grace: float = 60.0,
        cluster_size: int = 1,
        logger: Logger | None = None,
    ):
        self._registry = registry
        self._own_node = own_node
        self._liveness_check = liveness_check
        self._broadcast = broadcast
        self._base_delay = base_delay
        self._release_grace = release_grace
        self._cluster_size = cluster_size
        self._logger = logger or Logger()

        self._snapshot: list[Subscription] | None = None
        self._schedule: CleanupSchedule | None = None
        self._released = False

    @property
    def snapshot(self) -> list[Subscription] | None:
        return self._snapshot

    @property
    def released(self) -> bool:
        return self._released

    @property
    def scheduled(self) -> bool:
        return self._schedule is not None and not self._schedule.cancelled

    async def schedule(
        self,
        snapshot: list[Subscription] | None,
    ) -> float:
        """
        Arm the deferred reap of the snapshot and the later release of the
        cleanup machinery. Returns the reap delay in seconds.
        """
        delay = compute_cleanup_delay(
            self._cluster_size,
            base_delay=self._base_delay,
        )

        if self._released:
            await self._log_debug("Subscription cleanup was already released, not scheduling it")
            return delay

        self._schedule = CleanupSchedule()

        if snapshot is None:
            await self._log_error(
                "Cleanup of old AdminMessage subscriptions could not be performed."
            )

        else:
            self._snapshot = list(snapshot)
            self._schedule.call_later(
                delay,
                self.reap,
                name="adminbus-subscription-reap",
            )

            await self._log_info(
                f"Cleanup of {len(snapshot)} AdminMessage subscriptions scheduled in {delay:.0f}s"
            )

        self._schedule.call_later(
            delay + self._release_grace,
            self._release_scheduled,
            name="adminbus-subscription-cleanup-release",
        )

        return delay

    async def reap(self) -> ReapResult:
        """
        Verify every subscription of the snapshot and remove those of dead
        nodes, then tell all other nodes to skip their own cleanup.

        The snapshot is consumed, so reaping twice only reaps once.
        """
        result = ReapResult()

        snapshot, self._snapshot = self._snapshot, None
        if snapshot is None:
            return result

        outcomes = await asyncio.gather(*[
            self._check_subscription(subscription) for subscription in snapshot
        ])

        for subscription, outcome in zip(snapshot, outcomes):
            getattr(result, outcome).append(subscription.endpoint)

        await self._log_info(
            f"Subscription cleanup done: removed={len(result.removed)} kept={len(result.kept)} unverified={len(result.unverified)}"
        )

        await self._broadcast(PreventSubscriptionCleanup())

        return result

    def release(self) -> None:
        """
        Cancel whatever is still pending of the cleanup and discard the
        snapshot. Safe to call any number of times, before or after the
        scheduled actions ran.
        """
        self._released = True
        self._snapshot = None

        if self._schedule is not None:
            self._schedule.cancel()

    async def _release_scheduled(self) -> None:
        self.release()
        await self._log_debug("Subscription cleanup released")

    async def _check_subscription(self, subscription: Subscription) -> str:
        endpoint = subscription.endpoint

        try:
            node = Node.from_url(endpoint)

        except MalformedEndpointError:
            await self._log_error(
                f"Subscription with endpoint {endpoint} could not be verified. It will be kept for now."
            )
            return "unverified"

        try:
            alive = await node.is_alive(self._liveness_check)

        except Exception as err:
            await self._log_warning(
                f"Liveness of NODE={node.url} could not be checked, keeping subscription {endpoint}: {err}"
            )
            return "kept"

        if alive:
            return "kept"

        if await self._registry.unsubscribe(subscription):
            return "removed"

        return "kept"

    # =========================================================================
    # Logging Helpers
    # =========================================================================

    def _get_log_context(self) -> dict:
        return {
            "node_host": self._own_node.host,
            "node_port": self._own_node.port,
            "topic": self._registry.topic,
        }

    async def _log_debug(self, message: str) -> None:
        await self._logger.log(BrokerDebug(message=message, **self._get_log_context()))

    async def _log_info(self, message: str) -> None:
        await self._logger.log(BrokerInfo(message=message, **self._get_log_context()))

    async def _log_warning(self, message: str) -> None:
        await self._logger.log(BrokerWarning(message=message, **self._get_log_context()))

    async def _log_error(self, message: str) -> None:
        await self._logger.log(BrokerError(message=message, **self._get_log_context()))
