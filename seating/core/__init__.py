"""Core seating engine modules."""

from .allocator import GroupStatus, SeatingAllocator, SeatingManager
from .capacity_index import CapacityIndex
from .drainer import AdmissionDrainer, DrainerState
from .waiting_queue import WaitingQueue

__all__ = [
    "SeatingAllocator",
    "SeatingManager",
    "GroupStatus",
    "CapacityIndex",
    "AdmissionDrainer",
    "DrainerState",
    "WaitingQueue",
]
