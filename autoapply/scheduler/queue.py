"""FIFO execution queue with head insertion for manual runs."""

import logging
from collections import deque

from autoapply.core.schemas import QueueEntry, QueuePriority

logger = logging.getLogger(__name__)


class ExecutionQueue:
    """Ordered, duplicate-free queue of pending campaign executions.

    Manual entries go to the head, scheduled entries to the tail. A campaign
    id appears at most once.
    """

    def __init__(self) -> None:
        self._entries: deque[QueueEntry] = deque()

    def push(self, entry: QueueEntry) -> bool:
        """Add ``entry`` unless its campaign is already queued."""
        if entry.campaign_id in self:
            return False
        if entry.priority is QueuePriority.MANUAL:
            self._entries.appendleft(entry)
        else:
            self._entries.append(entry)
        return True

    def pop(self) -> QueueEntry | None:
        if not self._entries:
            return None
        return self._entries.popleft()

    def remove(self, campaign_id: str) -> bool:
        """Drop a not-yet-started entry. Returns True if one was removed."""
        for entry in self._entries:
            if entry.campaign_id == campaign_id:
                self._entries.remove(entry)
                return True
        return False

    def clear(self) -> None:
        self._entries.clear()

    def ids(self) -> list[str]:
        return [entry.campaign_id for entry in self._entries]

    def __contains__(self, campaign_id: object) -> bool:
        return any(entry.campaign_id == campaign_id for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
