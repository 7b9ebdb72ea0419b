"""FIFO queue of groups waiting for a table."""

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from ..models import Group

logger = logging.getLogger(__name__)


class WaitingQueue:
    """
    Strict arrival-order queue of groups awaiting seating.

    The queue is internally synchronized so arrivals and departures from
    different threads can push and remove without an outside lock. A group
    appears at most once.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._queue: Deque[Group] = deque()
        self._enqueued_at: Dict[Group, datetime] = {}  # For O(1) membership

        # Callbacks
        self._on_add_callbacks: List[Callable] = []
        self._on_remove_callbacks: List[Callable] = []

    def push(self, group: Group) -> bool:
        """
        Append a group to the tail of the queue.

        Returns:
            False if the group is already waiting
        """
        with self._lock:
            if group in self._enqueued_at:
                return False
            self._queue.append(group)
            self._enqueued_at[group] = datetime.now(timezone.utc)

        self._emit(self._on_add_callbacks, group)
        return True

    def peek(self) -> Optional[Group]:
        """Return the head group without removing it."""
        with self._lock:
            return self._queue[0] if self._queue else None

    def pop_if_head(self, group: Group) -> bool:
        """Remove ``group`` only if it is still at the head of the queue."""
        with self._lock:
            if not self._queue or self._queue[0] != group:
                return False
            self._queue.popleft()
            del self._enqueued_at[group]

        self._emit(self._on_remove_callbacks, group)
        return True

    def remove(self, group: Group) -> bool:
        """Remove a group wherever it sits. No-op if it is not waiting."""
        with self._lock:
            if group not in self._enqueued_at:
                return False
            self._queue.remove(group)
            del self._enqueued_at[group]

        self._emit(self._on_remove_callbacks, group)
        return True

    def snapshot(self) -> List[Group]:
        """Waiting groups, head first."""
        with self._lock:
            return list(self._queue)

    def on_add(self, callback: Callable):
        """Register callback for groups joining the queue."""
        self._on_add_callbacks.append(callback)

    def on_remove(self, callback: Callable):
        """Register callback for groups leaving the queue."""
        self._on_remove_callbacks.append(callback)

    def _emit(self, callbacks: List[Callable], group: Group):
        for callback in callbacks:
            try:
                callback(group)
            except Exception:
                logger.exception("Waiting queue callback failed for group %s", group.id)

    def get_stats(self) -> Dict[str, Any]:
        """Get queue statistics."""
        with self._lock:
            waiting = [(group, self._enqueued_at[group]) for group in self._queue]

        if not waiting:
            return {
                "total_waiting": 0,
                "total_guests": 0,
                "avg_wait_seconds": 0,
                "max_wait_seconds": 0,
                "head_size": None,
            }

        now = datetime.now(timezone.utc)
        wait_times = [(now - enqueued_at).total_seconds() for _, enqueued_at in waiting]
        return {
            "total_waiting": len(waiting),
            "total_guests": sum(group.size for group, _ in waiting),
            "avg_wait_seconds": sum(wait_times) / len(wait_times),
            "max_wait_seconds": max(wait_times),
            "head_size": waiting[0][0].size,
        }

    def __contains__(self, group: object) -> bool:
        with self._lock:
            return group in self._enqueued_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)
