import pytest

from tests.harness import Harness


@pytest.fixture()
def harness() -> Harness:
    return Harness()
