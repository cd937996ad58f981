import sys
from threading import Event

import pytest

# Ensure project root is importable (so `import rssc` works without installing the package)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from rssc import events  # noqa: E402
from rssc.channel import UpdateChannel  # noqa: E402
from rssc.models import Address  # noqa: E402
from rssc.settings import Settings  # noqa: E402


@pytest.fixture(autouse=True)
def clean_event_log():
    events.clear_events()
    yield
    events.clear_events()


@pytest.fixture
def fast_settings():
    """Settings with tiny timeouts so loops turn over quickly in tests."""
    return Settings(
        connect_timeout_s=0.2,
        socket_timeout_s=0.2,
        listen_timeout_s=0.02,
        backoff_initial_s=0.01,
        backoff_max_s=0.05,
        backoff_jitter_s=0.0,
        queue_max_size=1024,
        overflow_policy="block",
        max_producer_restarts=2,
        supervise_interval_s=0.02,
        status_port=0,
        webhook_url=None,
        enable_email=False,
    )


@pytest.fixture
def stop():
    ev = Event()
    yield ev
    ev.set()


@pytest.fixture
def channel(stop):
    return UpdateChannel(maxsize=1024, policy="block", stop=stop)


@pytest.fixture
def sentinel_addr():
    return Address("127.0.0.1", 26379)
