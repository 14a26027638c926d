"""In-process outbound delivery queue."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Dict, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class ChannelStats:
    sent: int = 0
    failed: int = 0
    skipped: int = 0


@dataclass
class DeliveryStats:
    """Delivery counters per channel (e.g. "email", "push")."""

    channels: Dict[str, ChannelStats] = field(default_factory=dict)

    def _channel(self, channel: str) -> ChannelStats:
        return self.channels.setdefault(channel, ChannelStats())

    def record_sent(self, channel: str) -> None:
        self._channel(channel).sent += 1

    def record_failed(self, channel: str) -> None:
        self._channel(channel).failed += 1

    def record_skipped(self, channel: str) -> None:
        self._channel(channel).skipped += 1

    def sent(self, channel: str) -> int:
        return self.channels.get(channel, ChannelStats()).sent

    def failed(self, channel: str) -> int:
        return self.channels.get(channel, ChannelStats()).failed

    def skipped(self, channel: str) -> int:
        return self.channels.get(channel, ChannelStats()).skipped


class DeliveryQueue:
    """
    Runs outbound deliveries as background asyncio tasks.

    Work is submitted after the business transaction has committed. A
    delivery coroutine returns False when it decided not to send (user
    preferences, no subscription). A failed delivery is logged and counted,
    never propagated to the submitter.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self.stats = DeliveryStats()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, channel: str, work: Awaitable[Optional[bool]], description: str = "") -> asyncio.Task:
        """Schedule a delivery coroutine on the running loop."""
        task = asyncio.ensure_future(self._run(channel, work, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, channel: str, work: Awaitable[Optional[bool]], description: str) -> None:
        try:
            delivered = await work
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.record_failed(channel)
            logger.error(f"[{channel.upper()}_DELIVERY] {description or 'delivery'} failed: {e}")
            return

        if delivered is False:
            self.stats.record_skipped(channel)
        else:
            self.stats.record_sent(channel)

    async def drain(self) -> None:
        """Wait for every in-flight delivery to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
