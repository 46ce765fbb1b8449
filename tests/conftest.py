"""
Shared fixtures for townwatch tests.
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from feed_samples import home_markup, town_markup


@pytest.fixture
def fixed_time():
    """2025-01-01T00:00:00Z, epoch 1735689600."""
    return datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_clock(fixed_time):
    """Deterministic clock starting at fixed_time."""
    return MockClock(fixed_time)


@pytest.fixture
def rome_description():
    """Merged primary + home description for Rome."""
    return f"{town_markup()}\n{home_markup()}"
