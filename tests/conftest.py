import io

import pytest

from ciwatch.core.config import WatchConfig
from ciwatch.core.console import Console
from tests.helpers import FakeSleep


@pytest.fixture
def config():
    return WatchConfig(
        token="fake",
        run_limit=20,
        poll_timeout=60,
        poll_interval=10,
        no_runs_retry_delay=5,
    )


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def buffer():
    return io.StringIO()


@pytest.fixture
def console(buffer):
    return Console(stream=buffer, color=False)
