"""Errors raised by the seating allocator."""


class InvalidInput(ValueError):
    """A required argument was missing or a table list was malformed."""
