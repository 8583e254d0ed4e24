"""Shared FastAPI dependencies — clock injection.

Tests override get_clock via app.dependency_overrides to freeze time.
"""

from parley.core.clock import Clock, SystemClock

_system_clock = SystemClock()


def get_clock() -> Clock:
    return _system_clock
