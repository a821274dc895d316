"""Lead-window notifier for queued users."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from washqueue.domain.events import PreNotifyEvent
from washqueue.domain.machines import Machine
from washqueue.services.timing import minutes_until, queue_slices

logger = logging.getLogger(__name__)

DEFAULT_LEAD_WINDOW_SECONDS = 120


@dataclass
class NotificationScheduler:
    """Fire one "starting soon" event per queue occurrence.

    The pass is level-triggered: every call re-derives predicted starts from
    the machines, and the record of already-notified (machine, user) pairs
    keeps each occurrence to a single event no matter how often it runs.
    """

    lead_window_seconds: int = DEFAULT_LEAD_WINDOW_SECONDS
    _notified: set[tuple[int, int]] = field(default_factory=set)

    def evaluate(self, machines: Iterable[Machine], now: float) -> list[PreNotifyEvent]:
        """Return the notifications that became due at ``now``."""
        events = []
        for machine in machines:
            for queued in queue_slices(machine, now):
                key = (machine.id, queued.user_id)
                if key in self._notified:
                    continue
                if queued.wait_seconds > self.lead_window_seconds:
                    continue
                self._notified.add(key)
                events.append(
                    PreNotifyEvent(
                        machine_id=machine.id,
                        machine_name=machine.name,
                        user_id=queued.user_id,
                        minutes_until_start=minutes_until(queued.wait_seconds),
                    )
                )
                logger.info(
                    "Pre-start notification due",
                    extra={"machine_id": machine.id, "user_id": queued.user_id},
                )
        return events

    def clear(self, machine_id: int, user_id: int) -> None:
        """Forget a pair so the user's next occurrence can notify again."""
        self._notified.discard((machine_id, user_id))

    def is_notified(self, machine_id: int, user_id: int) -> bool:
        """Return True when the pair already fired for its current entry."""
        return (machine_id, user_id) in self._notified

    def notified_pairs(self) -> list[tuple[int, int]]:
        """Return recorded pairs in a stable order."""
        return sorted(self._notified)

    def reset(self) -> None:
        """Forget every recorded notification."""
        self._notified.clear()
