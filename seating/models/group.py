"""Customer group model."""

import uuid
from dataclasses import dataclass, field

from ..errors import InvalidInput


@dataclass(frozen=True)
class Group:
    """
    A party of customers that arrives, waits and is seated together.

    Groups compare by id and size, so two parties of equal size created
    without an explicit id are distinct occupants.
    """

    size: int
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise InvalidInput(f"group size must be an integer, got {self.size!r}")
        if self.size <= 0:
            raise InvalidInput(f"group size must be positive, got {self.size}")

    def to_dict(self) -> dict:
        return {"id": self.id, "size": self.size}
