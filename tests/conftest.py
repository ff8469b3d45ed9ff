import pytest

import computedproxy


@pytest.fixture(autouse=True)
def _restore_strict():
    """Tests may flip strict mode; put it back afterwards."""
    previous = computedproxy.is_strict()
    yield
    computedproxy.set_strict(previous)
