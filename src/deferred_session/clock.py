"""Wall-clock capability.

Time-dependent updates and hosts accept a ``Clock`` so tests can pin the
current time.

Functions
---------
- system_clock  — current Unix time in whole seconds
"""
from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Return the current Unix timestamp in whole seconds."""
    return int(time.time())
