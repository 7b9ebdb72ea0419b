"""Single-flight drain loop that seats waiting groups."""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models import Group, Table
from .capacity_index import CapacityIndex
from .waiting_queue import WaitingQueue

logger = logging.getLogger(__name__)


class DrainerState(str, Enum):
    """Drainer states."""

    IDLE = "idle"
    DRAINING = "draining"


class AdmissionDrainer:
    """
    Seats head-of-queue groups whenever capacity may have changed.

    Only one drain pass runs at a time. A trigger that finds a pass already
    running does not wait: it marks the drainer dirty and returns, and the
    running pass re-checks the flag after releasing its lock, so no capacity
    change goes unobserved.

    Two execution modes:
    - worker: a dedicated daemon thread waits for the dirty flag and drains.
      Triggering never blocks on seating.
    - inline: the triggering thread runs the pass itself when it wins the
      lock. Used whenever no worker thread is alive.

    With ``use_worker`` the thread is started by the first trigger and runs
    until ``stop()``; after that triggers drain inline until ``start()``.
    ``on_seated`` listeners run after the pass has released its lock.
    """

    def __init__(
        self,
        queue: WaitingQueue,
        index: CapacityIndex,
        record_seat: Callable[[Group, Table], None],
        thread_name: str = "seating-drainer",
        poll_interval: float = 0.5,
        on_seated: Optional[Callable[[Group, Table], None]] = None,
        use_worker: bool = False,
    ):
        self.queue = queue
        self.index = index
        self._record_seat = record_seat
        self._on_seated = on_seated
        self.use_worker = use_worker
        self.thread_name = thread_name
        self.poll_interval = poll_interval

        self._lock = threading.Lock()  # held for the whole pass
        self._cond = threading.Condition()  # guards the flags below
        self._dirty = False
        self._running = False
        self._stopping = False
        self._closed = False
        self._thread: Optional[threading.Thread] = None

        # Metrics
        self.total_passes = 0
        self.total_seated = 0
        self.dropped_triggers = 0

    @property
    def state(self) -> DrainerState:
        return DrainerState.DRAINING if self._running else DrainerState.IDLE

    @property
    def worker_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the worker thread."""
        with self._cond:
            if self.worker_alive:
                return
            self._stopping = False
            self._closed = False
            self._thread = threading.Thread(target=self._run, name=self.thread_name, daemon=True)
            self._thread.start()
        logger.debug("Drainer worker %s started", self.thread_name)

    def stop(self, timeout: Optional[float] = None):
        """Stop the worker thread. Later triggers drain inline until start()."""
        with self._cond:
            self._closed = True
        thread = self._thread
        if thread is None:
            return
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        thread.join(timeout)
        self._thread = None
        logger.debug("Drainer worker %s stopped", self.thread_name)

        # Anything triggered while shutting down is drained by the caller
        self._drain_until_clean()

    def trigger(self):
        """Signal that capacity or the queue changed."""
        with self._cond:
            self._dirty = True
            self._cond.notify_all()
            start_worker = self.use_worker and not self._closed
        if start_worker and not self.worker_alive:
            self.start()
        if not self.worker_alive:
            self._drain_until_clean()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until no pass is running and none is pending.

        Returns:
            False if the timeout expired first
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._running and not self._dirty,
                timeout,
            )

    def _run(self):
        """Worker loop."""
        while True:
            with self._cond:
                self._cond.wait_for(
                    lambda: self._dirty or self._stopping,
                    self.poll_interval,
                )
                if self._stopping:
                    break
            self._drain_until_clean()

    def _drain_until_clean(self):
        while True:
            with self._cond:
                if not self._dirty:
                    return
            if not self._lock.acquire(blocking=False):
                # The holder re-checks the dirty flag after releasing
                with self._cond:
                    self.dropped_triggers += 1
                return
            seats: List[Tuple[Group, Table]] = []
            try:
                with self._cond:
                    self._running = True
                    self._dirty = False
                try:
                    self._drain_pass(seats)
                except Exception:
                    logger.exception("Drain pass failed")
                self.total_passes += 1
                self.total_seated += len(seats)
            finally:
                with self._cond:
                    self._running = False
                    self._lock.release()
                    self._cond.notify_all()

            # Listeners run with no drainer or index lock held
            self._notify(seats)

    def _notify(self, seats: List[Tuple[Group, Table]]):
        if self._on_seated is None:
            return
        for group, table in seats:
            try:
                self._on_seated(group, table)
            except Exception:
                logger.exception("Seated notification failed for group %s", group.id)

    def _drain_pass(self, seats: List[Tuple[Group, Table]]):
        """
        Seat as many head groups as current capacity allows.

        Stops at the first head group no table can hold; groups behind it are
        not considered even if they would fit.

        Each seated (group, table) pair is appended to ``seats``.
        """
        while True:
            group = self.queue.peek()
            if group is None:
                break

            with self.index.transaction():
                found = self.index.take_any(group.size)
                if found is None:
                    logger.debug(
                        "No table with %d free seats for head group %s",
                        group.size,
                        group.id,
                    )
                    break

                table, free_seats = found
                if not self.queue.pop_if_head(group):
                    # Head departed after peek
                    self.index.release(table, None, free_seats)
                    continue

                self.index.release(table, None, free_seats - group.size)
                self._record_seat(group, table)

            seats.append((group, table))
            logger.debug(
                "Seated group %s (size %d) at table %s, %d seats left",
                group.id,
                group.size,
                table.id,
                free_seats - group.size,
            )

    def get_stats(self) -> Dict[str, Any]:
        """Get drainer statistics."""
        return {
            "state": self.state.value,
            "worker_alive": self.worker_alive,
            "total_passes": self.total_passes,
            "total_seated": self.total_seated,
            "dropped_triggers": self.dropped_triggers,
        }
