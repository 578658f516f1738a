import pytest

import reactform._tracking as _tracking
import reactform.reactive as _reactive


@pytest.fixture(autouse=True)
def _clean_runtime():
    """Each test starts with no open batch, nothing pending, default config."""
    yield
    _tracking._batch_depth = 0
    _tracking._pending.clear()
    _tracking._flushing = False
    _tracking._max_update_depth = _tracking.DEFAULT_MAX_UPDATE_DEPTH
    _reactive._scheduler = None
    _reactive._scheduler_thread = None
