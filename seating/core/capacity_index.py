"""Free-seat buckets for best-fit table lookup."""

import threading
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Iterator, List, Optional, Sequence, Tuple

from ..models import Table


class CapacityIndex:
    """
    Partitions tables into buckets keyed by their current free-seat count.

    Bucket keys run from 0 to the largest table capacity. A table with k free
    seats lives in bucket k and in no other bucket. The index does not keep a
    per-table free-seat counter: callers that move a table must pass the key
    it currently sits in, or look it up with ``locate_bucket_of``.

    All operations are guarded by one re-entrant lock. ``transaction()``
    exposes that lock so a take/release or locate/release sequence can run
    without another thread observing the table between buckets.
    """

    def __init__(self, tables: Sequence[Table]):
        self.max_capacity = max(table.capacity for table in tables)
        self._lock = threading.RLock()
        self._buckets: Dict[int, Deque[Table]] = {
            free_seats: deque() for free_seats in range(self.max_capacity + 1)
        }
        for table in tables:
            self._buckets[table.capacity].append(table)

    @contextmanager
    def transaction(self) -> Iterator["CapacityIndex"]:
        """Hold the index lock across several operations."""
        with self._lock:
            yield self

    def take_any(self, min_free_seats: int) -> Optional[Tuple[Table, int]]:
        """
        Remove and return the table with the fewest free seats that still
        has at least ``min_free_seats``.

        Returns:
            ``(table, free_seats)`` or None if no bucket in range has a table
        """
        with self._lock:
            for free_seats in range(max(min_free_seats, 0), self.max_capacity + 1):
                bucket = self._buckets[free_seats]
                if bucket:
                    return bucket.popleft(), free_seats
        return None

    def release(
        self,
        table: Table,
        previous_free_seats: Optional[int],
        new_free_seats: int,
    ) -> bool:
        """
        Move ``table`` from bucket ``previous_free_seats`` to bucket
        ``new_free_seats``.

        Pass ``previous_free_seats=None`` for a table that was just removed by
        ``take_any`` and only needs inserting.

        Returns:
            False if the table was not found in the previous bucket, in which
            case nothing moves
        """
        if not 0 <= new_free_seats <= table.capacity:
            raise ValueError(
                f"free seats {new_free_seats} out of range for table {table.id} "
                f"with capacity {table.capacity}"
            )
        with self._lock:
            if previous_free_seats is not None:
                try:
                    self._buckets[previous_free_seats].remove(table)
                except (KeyError, ValueError):
                    return False
            self._buckets[new_free_seats].append(table)
            return True

    def locate_bucket_of(self, table: Table, upper_bound_key: int) -> Optional[int]:
        """Scan buckets downward from ``upper_bound_key`` for ``table``."""
        with self._lock:
            for free_seats in range(min(upper_bound_key, self.max_capacity), -1, -1):
                if table in self._buckets[free_seats]:
                    return free_seats
        return None

    def free_seats(self, table: Table) -> Optional[int]:
        """Current free-seat count of ``table``, or None if it is in no bucket."""
        return self.locate_bucket_of(table, table.capacity)

    def bucket(self, free_seats: int) -> List[Table]:
        """Snapshot of the tables in one bucket."""
        with self._lock:
            return list(self._buckets.get(free_seats, ()))

    def bucket_sizes(self) -> Dict[int, int]:
        """Number of tables per free-seat count."""
        with self._lock:
            return {free_seats: len(bucket) for free_seats, bucket in self._buckets.items()}

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._buckets.values())
