import os
from datetime import datetime

import pytest

# Use in-memory sqlite for tests; set before weeklyfocus builds its settings
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from weeklyfocus.db import init_storage  # noqa: E402
from weeklyfocus.services.tracker import FocusTracker  # noqa: E402

MEMORY_URL = "sqlite+pysqlite:///:memory:"

# Wednesday; with a Monday start the cycle is 2025-12-08 .. 2025-12-14
WEDNESDAY = datetime(2025, 12, 10, 10, 0)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(WEDNESDAY)


@pytest.fixture
def session_factory():
    return init_storage(MEMORY_URL)


@pytest.fixture
def tracker(session_factory, clock):
    t = FocusTracker(session_factory, clock=clock)
    t.start()
    yield t
    t.close()


@pytest.fixture
def goal_id(tracker):
    return tracker.snapshot().current_goal.id
