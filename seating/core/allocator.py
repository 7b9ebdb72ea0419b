"""Seating manager that coordinates the queue, the index and the drainer."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import Settings, get_settings
from ..errors import InvalidInput
from ..models import Group, Table
from .capacity_index import CapacityIndex
from .drainer import AdmissionDrainer
from .waiting_queue import WaitingQueue

logger = logging.getLogger(__name__)


def _require_group(group):
    if group is None:
        raise InvalidInput("group is None")
    if not isinstance(group, Group):
        raise InvalidInput(f"expected a Group, got {group!r}")


def _require_table(table):
    if table is None:
        raise InvalidInput("table is None")
    if not isinstance(table, Table):
        raise InvalidInput(f"expected a Table, got {table!r}")


class GroupStatus(str, Enum):
    """Where a group currently is."""

    WAITING = "waiting"
    SEATED = "seated"
    UNKNOWN = "unknown"


class SeatingManager(ABC):
    """Seats arriving groups at tables and frees tables when they leave."""

    @abstractmethod
    def arrive(self, group: Group) -> None:
        """Group arrives and wants to be seated."""

    @abstractmethod
    def depart(self, group: Group) -> None:
        """Whether seated or not, the group leaves the restaurant."""

    @abstractmethod
    def locate(self, group: Group) -> Optional[Table]:
        """Return the table at which the group is seated, or None if waiting."""


class SeatingAllocator(SeatingManager):
    """
    Best-fit table allocator with a FIFO waiting queue.

    Arrivals join the waiting queue and departures free seats; both then
    trigger the admission drainer, which seats head-of-queue groups at the
    table with the fewest free seats that still fits them.

    Components:
    - CapacityIndex: tables bucketed by current free seats
    - occupancy: table -> groups seated there
    - serving: group -> table
    - WaitingQueue: groups not yet seated
    - AdmissionDrainer: single-flight seating loop

    In worker mode the drain thread starts on the first arrival or on
    ``__enter__``. Call ``close()``, or use the allocator as a context
    manager, to stop it.
    """

    def __init__(self, tables: Sequence[Table], settings: Optional[Settings] = None):
        if tables is None:
            raise InvalidInput("tables is None")
        tables = list(tables)
        if not tables:
            raise InvalidInput("at least one table is required")
        for table in tables:
            if not isinstance(table, Table):
                raise InvalidInput(f"expected a Table, got {table!r}")
        if len(set(tables)) != len(tables):
            raise InvalidInput("duplicate tables in table list")

        self.settings = settings or get_settings()
        self.tables: List[Table] = tables

        # Core components
        self.index = CapacityIndex(tables)
        self.queue = WaitingQueue()
        self.occupancy: Dict[Table, List[Group]] = {table: [] for table in tables}
        self.serving: Dict[Group, Table] = {}
        self.drainer = AdmissionDrainer(
            self.queue,
            self.index,
            self._record_seat,
            thread_name=self.settings.drain_thread_name,
            poll_interval=self.settings.drain_poll_interval,
            on_seated=self._notify_seated,
            use_worker=self.settings.drain_mode == "worker",
        )

        # Event handlers
        self._on_seated_callbacks: List[Callable] = []
        self._on_departed_callbacks: List[Callable] = []

        logger.info(
            "%s ready with %d tables, max capacity %d, drain mode %s",
            self.settings.app_name,
            len(tables),
            self.index.max_capacity,
            self.settings.drain_mode,
        )

    @classmethod
    def from_capacities(
        cls, capacities: Iterable[int], settings: Optional[Settings] = None
    ) -> "SeatingAllocator":
        """Build an allocator with one generated table per capacity."""
        if capacities is None:
            raise InvalidInput("capacities is None")
        return cls([Table(capacity) for capacity in capacities], settings)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SeatingAllocator":
        """Build an allocator from the configured table capacities."""
        settings = settings or get_settings()
        return cls.from_capacities(settings.table_capacities, settings)

    # ==================== Arrivals / Departures ====================

    def arrive(self, group: Group) -> None:
        _require_group(group)
        with self.index.transaction():
            if group in self.serving or not self.queue.push(group):
                return

        logger.debug("Group %s (size %d) joined the queue", group.id, group.size)
        self.drainer.trigger()

    def depart(self, group: Group) -> None:
        _require_group(group)

        with self.index.transaction():
            table = self.serving.pop(group, None)
            if table is None:
                if not self.queue.remove(group):
                    return
            else:
                self._clear_table(table, group)

        if table is None:
            # A waiting head leaving may unblock the groups behind it
            logger.debug("Group %s left before being seated", group.id)
        else:
            logger.debug("Group %s left table %s", group.id, table.id)
            self._emit(self._on_departed_callbacks, group, table)
        self.drainer.trigger()

    def locate(self, group: Group) -> Optional[Table]:
        _require_group(group)
        return self.serving.get(group)

    def _record_seat(self, group: Group, table: Table):
        """Bookkeeping for a seat decision. Runs inside the index transaction."""
        self.occupancy[table].append(group)
        self.serving[group] = table

    def _notify_seated(self, group: Group, table: Table):
        self._emit(self._on_seated_callbacks, group, table)

    def _clear_table(self, table: Table, group: Group):
        """Give the group's seats back to the table. Runs inside the index transaction."""
        guests = self.occupancy[table]
        if group in guests:
            guests.remove(group)

        free_seats = self.index.locate_bucket_of(table, table.capacity - group.size)
        if free_seats is None:
            logger.error(
                "Table %s not found in any bucket up to %d free seats",
                table.id,
                table.capacity - group.size,
            )
            return
        self.index.release(table, free_seats, free_seats + group.size)

    # ==================== Queries ====================

    def status(self, group: Group) -> GroupStatus:
        """Whether the group is waiting, seated or not tracked."""
        _require_group(group)
        with self.index.transaction():
            if group in self.serving:
                return GroupStatus.SEATED
            if group in self.queue:
                return GroupStatus.WAITING
        return GroupStatus.UNKNOWN

    def guests_at(self, table: Table) -> List[Group]:
        """Groups currently seated at a table."""
        _require_table(table)
        with self.index.transaction():
            return list(self.occupancy.get(table, ()))

    def waiting_groups(self) -> List[Group]:
        """Waiting groups, head first."""
        return self.queue.snapshot()

    def free_seats(self, table: Table) -> Optional[int]:
        """Current free seats at a table."""
        _require_table(table)
        return self.index.free_seats(table)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the drainer has no running or pending pass."""
        return self.drainer.wait_until_idle(timeout)

    # ==================== Callbacks ====================

    def on_seated(self, callback: Callable):
        """
        Register callback(group, table) for seated groups.

        Callbacks run on the draining thread after the pass has finished, with
        no allocator lock held.
        """
        self._on_seated_callbacks.append(callback)

    def on_departed(self, callback: Callable):
        """Register callback(group, table) for groups leaving a table."""
        self._on_departed_callbacks.append(callback)

    def _emit(self, callbacks: List[Callable], group: Group, table: Table):
        for callback in callbacks:
            try:
                callback(group, table)
            except Exception:
                logger.exception("Seating callback failed for group %s", group.id)

    # ==================== Lifecycle ====================

    def close(self):
        """Stop the drainer worker. Later events drain on the caller's thread."""
        self.drainer.stop()

    def __enter__(self) -> "SeatingAllocator":
        if self.settings.drain_mode == "worker":
            self.drainer.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ==================== Summary ====================

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of tables, seated and waiting groups."""
        with self.index.transaction():
            seated_guests = sum(group.size for group in self.serving)
            seated_groups = len(self.serving)
            bucket_sizes = self.index.bucket_sizes()

        total_seats = sum(table.capacity for table in self.tables)
        queue_stats = self.queue.get_stats()

        return {
            "total_tables": len(self.tables),
            "max_capacity": self.index.max_capacity,
            "total_seats": total_seats,
            "free_seats": total_seats - seated_guests,
            "seated_groups": seated_groups,
            "seated_guests": seated_guests,
            "utilization": seated_guests / total_seats,
            "waiting_groups": queue_stats["total_waiting"],
            "waiting_guests": queue_stats["total_guests"],
            "bucket_sizes": bucket_sizes,
            "drainer": self.drainer.get_stats(),
        }
