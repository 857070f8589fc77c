"""Shared fixtures."""

import pytest

from tests.helpers import FakeClock, StaticOracle


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def oracle() -> StaticOracle:
    return StaticOracle()
