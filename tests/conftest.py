import pytest

from scholarscout import net


@pytest.fixture(autouse=True)
def _fresh_session_cache():
    net._CACHE.clear()
    net._LAST_CALL.clear()
    yield
    net._CACHE.clear()
