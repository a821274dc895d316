"""Time sources for the scheduling engine."""

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """Interface for reading the current wall-clock time."""

    def now(self) -> float:
        """Return the current time in epoch seconds."""


@dataclass
class SystemClock(Clock):
    """Clock backed by the system wall clock."""

    def now(self) -> float:
        """Return ``time.time()``."""
        return time.time()
