import pytest

from tests.harness import Harness, build_harness


@pytest.fixture
def harness() -> Harness:
    return build_harness()
