import pytest

from tests.fakes import ManualClock


@pytest.fixture
def clock():
    return ManualClock()
