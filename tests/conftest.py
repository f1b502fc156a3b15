import pytest

from helpers import ManualScheduler


@pytest.fixture
def scheduler():
    """A scheduler with a frozen clock, advanced explicitly by each test."""
    return ManualScheduler()
