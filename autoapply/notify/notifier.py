"""Notification capability: channel protocol plus fire-and-forget dispatch.

Delivery never affects a run's outcome: send failures are logged and dropped.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """One delivery channel (email, chat, ...)."""

    @property
    def channel(self) -> str: ...

    async def send(self, message: str, recipient: str) -> bool: ...


class LogNotifier:
    """Writes notifications to the log instead of an external transport."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    @property
    def channel(self) -> str:
        return "log"

    async def send(self, message: str, recipient: str) -> bool:
        logger.log(self._level, "Notification for %s:\n%s", recipient, message)
        return True


class NotificationDispatcher:
    """Schedules sends on every channel without awaiting them."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self._notifiers = list(notifiers)
        self._pending: set[asyncio.Task[None]] = set()

    def dispatch(self, message: str, recipient: str | None) -> None:
        if not recipient or not self._notifiers:
            return
        for notifier in self._notifiers:
            task = asyncio.create_task(self._deliver(notifier, message, recipient))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for in-flight sends (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    @staticmethod
    async def _deliver(notifier: Notifier, message: str, recipient: str) -> None:
        try:
            delivered = await notifier.send(message, recipient)
        except Exception:
            logger.warning("Notifier '%s' raised while sending", notifier.channel, exc_info=True)
            return
        if not delivered:
            logger.warning("Notifier '%s' did not deliver to %s", notifier.channel, recipient)
