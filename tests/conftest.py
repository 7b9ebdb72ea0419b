"""Shared fixtures for seating tests."""

import pytest

from seating.config import Settings


@pytest.fixture
def inline_settings():
    """Settings that drain on the caller's thread, for deterministic tests."""
    return Settings(drain_mode="inline", table_capacities=[])


@pytest.fixture
def worker_settings():
    """Settings with a background drain worker."""
    return Settings(drain_mode="worker", drain_poll_interval=0.05)
