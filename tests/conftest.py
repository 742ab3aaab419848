import pytest

import scopewatch.scheduler as _sched_mod


@pytest.fixture(autouse=True)
def _reset_scheduling():
    """Each test starts with no global scheduler and an empty next-tick queue."""
    old = _sched_mod._scheduler
    _sched_mod._scheduler = None
    _sched_mod._ticks.clear()
    yield
    _sched_mod._scheduler = old
    _sched_mod._ticks.clear()
