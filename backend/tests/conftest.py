"""Root conftest — shared test configuration and a controllable clock."""

import os

import pytest

# Must be set before parley.config.get_settings() is first called
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")


class FrozenClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, start: int = 1_000):
        self.now = start

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()
