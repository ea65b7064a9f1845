"""Test configuration and fixtures."""

import pytest

from walletscreen.models.screening import ScreeningLimits
from walletscreen.stores.memory import MemoryBlacklistStore

from fakes import FakeSource


@pytest.fixture
def limits() -> ScreeningLimits:
    """Default limits without the inter-call pause."""
    return ScreeningLimits(call_delay_ms=0)


@pytest.fixture
def blacklist() -> MemoryBlacklistStore:
    """Provide an empty in-memory blacklist."""
    return MemoryBlacklistStore()


@pytest.fixture
def source() -> FakeSource:
    """Provide a transaction source with no history."""
    return FakeSource()
