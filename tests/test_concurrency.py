"""Tests for concurrent arrivals and departures with a drain worker."""

import random
import threading

import pytest

from seating import SeatingAllocator
from seating.models import Group, Table

from .test_allocator import assert_consistent


class TestWorkerMode:
    """Tests for the background drain worker."""

    def test_worker_seats_groups(self, worker_settings):
        """Test arrivals are seated by the worker thread."""
        table = Table(4)
        with SeatingAllocator([table], worker_settings) as allocator:
            assert allocator.drainer.worker_alive
            group = Group(3)
            allocator.arrive(group)

            assert allocator.wait_until_idle(timeout=5)
            assert allocator.locate(group) == table

        assert allocator.drainer.worker_alive is False

    def test_worker_not_started_until_needed(self, worker_settings):
        """Test constructing an allocator does not start a thread."""
        allocator = SeatingAllocator.from_capacities([4], worker_settings)
        try:
            assert allocator.drainer.worker_alive is False
            allocator.arrive(Group(2))
            assert allocator.drainer.worker_alive
            assert allocator.wait_until_idle(timeout=5)
        finally:
            allocator.close()
        assert allocator.drainer.worker_alive is False

    def test_close_falls_back_to_inline(self, worker_settings):
        """Test events after close are drained on the caller's thread."""
        allocator = SeatingAllocator.from_capacities([2], worker_settings)
        allocator.close()

        group = Group(2)
        allocator.arrive(group)
        assert allocator.locate(group) is not None


class TestConcurrentEvents:
    """Many threads arriving and leaving at once."""

    @pytest.mark.parametrize("mode", ["worker", "inline"])
    def test_invariants_hold_under_contention(self, mode, inline_settings, worker_settings):
        """Test bookkeeping stays consistent with racing threads."""
        settings = worker_settings if mode == "worker" else inline_settings
        tables = [Table(capacity) for capacity in (2, 2, 4, 4, 6, 8)]
        rng = random.Random(7)
        groups = [Group(rng.randint(1, 8)) for _ in range(200)]
        leavers = set(groups[::2])

        with SeatingAllocator(tables, settings) as allocator:
            start = threading.Barrier(8)

            def guest_flow(chunk):
                start.wait()
                for group in chunk:
                    allocator.arrive(group)
                for group in chunk:
                    if group in leavers:
                        allocator.depart(group)

            threads = [
                threading.Thread(target=guest_flow, args=(groups[i::8],))
                for i in range(8)
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30)

            assert allocator.wait_until_idle(timeout=10)
            assert_consistent(allocator)

            for group in leavers:
                assert allocator.locate(group) is None
                assert group not in allocator.waiting_groups()

            # The pass stopped because the head does not fit anywhere
            waiting = allocator.waiting_groups()
            if waiting:
                best = max(allocator.free_seats(table) for table in tables)
                assert waiting[0].size > best

    def test_every_group_seated_after_all_leave(self, worker_settings):
        """Test the queue fully drains once earlier guests have left."""
        tables = [Table(4), Table(6)]
        first = [Group(4), Group(6)]
        later = [Group(3) for _ in range(3)]

        with SeatingAllocator(tables, worker_settings) as allocator:
            for group in first + later:
                allocator.arrive(group)
            assert allocator.wait_until_idle(timeout=5)
            assert len(allocator.waiting_groups()) == 3

            departures = [threading.Thread(target=allocator.depart, args=(g,)) for g in first]
            for thread in departures:
                thread.start()
            for thread in departures:
                thread.join(timeout=5)

            assert allocator.wait_until_idle(timeout=5)
            assert allocator.waiting_groups() == []
            for group in later:
                assert allocator.locate(group) is not None
            assert_consistent(allocator)
