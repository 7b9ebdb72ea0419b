"""Restaurant seating allocator."""

from .config import Settings, get_settings
from .core import GroupStatus, SeatingAllocator, SeatingManager
from .errors import InvalidInput
from .models import Group, Table

__all__ = [
    "Settings",
    "get_settings",
    "SeatingAllocator",
    "SeatingManager",
    "GroupStatus",
    "InvalidInput",
    "Group",
    "Table",
]
