"""Fixtures for sync engine tests."""

import pytest

from fakes import FakePriceSource


@pytest.fixture
def source() -> FakePriceSource:
    """Price source that answers every call immediately."""
    return FakePriceSource()


@pytest.fixture
def gated_source() -> FakePriceSource:
    """Price source whose calls stay in flight until the test resolves them."""
    return FakePriceSource(auto=False)
