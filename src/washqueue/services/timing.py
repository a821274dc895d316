"""Wait-time arithmetic derived from stored end timestamps.

Nothing here keeps a countdown. Every figure is recomputed from a machine's
session end time, its queued durations and the caller's ``now``, so two
readers asking at the same instant always agree.
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime

from washqueue.domain.machines import Machine


@dataclass(frozen=True)
class QueueSlice:
    """A queued entry with the wait accumulated ahead of it."""

    user_id: int
    wait_seconds: int
    duration_seconds: int


def remaining_seconds(ends_at: float | None, now: float) -> int:
    """Return whole seconds until ``ends_at``, clamped at zero."""
    if ends_at is None:
        return 0
    return max(0, math.floor(ends_at - now))


def active_remaining_seconds(machine: Machine, now: float) -> int:
    """Return the live session's remaining time, or 0 when idle."""
    session = machine.live_session(now)
    if session is None:
        return 0
    return remaining_seconds(session.ends_at, now)


def total_occupied_seconds(machine: Machine, now: float) -> int:
    """Return how long a brand-new joiner would wait for this machine."""
    queued = sum(entry.duration_seconds for entry in machine.queue)
    return active_remaining_seconds(machine, now) + queued


def wait_seconds_for_user(machine: Machine, user_id: int, now: float) -> int:
    """Return the wait ahead of ``user_id`` on ``machine``.

    The occupant gets their own remaining wash time. A queued user gets the
    active remaining time plus every duration queued strictly ahead of them.
    Anyone else gets 0; callers check membership separately.
    """
    session = machine.live_session(now)
    if session is not None and session.user_id == user_id:
        return remaining_seconds(session.ends_at, now)
    if machine.queue_index(user_id) is None:
        return 0
    total = active_remaining_seconds(machine, now)
    for entry in machine.queue:
        if entry.user_id == user_id:
            break
        total += entry.duration_seconds
    return total


def queue_slices(machine: Machine, now: float) -> list[QueueSlice]:
    """Return each queued entry with its wait, in FIFO order."""
    slices = []
    wait = active_remaining_seconds(machine, now)
    for entry in machine.queue:
        slices.append(
            QueueSlice(
                user_id=entry.user_id,
                wait_seconds=wait,
                duration_seconds=entry.duration_seconds,
            )
        )
        wait += entry.duration_seconds
    return slices


def minutes_until(seconds: int) -> int:
    """Round a positive wait up to whole minutes."""
    return math.ceil(seconds / 60)


def format_instant(timestamp: float) -> str:
    """Return an ISO-8601 UTC instant with a trailing ``Z``."""
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat().replace("+00:00", "Z")
