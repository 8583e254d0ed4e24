"""Clock — injectable source of "now" in epoch milliseconds.

Invariants:
    - now_ms() is read fresh at every evaluation point, never cached by callers
    - Services receive a Clock; nothing in the codebase calls time.time() directly
"""

import time
from typing import Protocol

from parley.core.domain_types import EpochMs


class Clock(Protocol):
    """Structural contract for anything that can tell the current time."""
    def now_ms(self) -> EpochMs: ...


class SystemClock:
    """Wall clock backed by time.time()."""

    def now_ms(self) -> EpochMs:
        return EpochMs(int(time.time() * 1000))
