"""Table model for restaurant tables."""

import uuid
from dataclasses import dataclass, field

from ..errors import InvalidInput


@dataclass(frozen=True)
class Table:
    """Restaurant table with a fixed number of seats."""

    capacity: int
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise InvalidInput(f"table capacity must be an integer, got {self.capacity!r}")
        if self.capacity <= 0:
            raise InvalidInput(f"table capacity must be positive, got {self.capacity}")

    def to_dict(self) -> dict:
        """Convert to dictionary for summaries and logs."""
        return {"id": self.id, "capacity": self.capacity}
