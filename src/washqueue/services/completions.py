"""Per-day record of members who already finished a wash."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from washqueue.domain.machines import CompletedSession

logger = logging.getLogger(__name__)


class CompletedWashRepository(Protocol):
    """Persistence interface for completed washes."""

    def add_completion(
        self, user_id: int, machine_id: int, day: date, ended_at: datetime
    ) -> None:
        """Store one completed wash."""

    def list_user_ids(self, day: date) -> set[int]:
        """Return user ids that completed a wash on ``day``."""

    def clear_day(self, day: date) -> None:
        """Delete every completion recorded for ``day``."""


@dataclass
class CompletedWashService:
    """Daily completed-wash guard with a write-through repository.

    Lookups are answered from memory so the scheduling engine never waits on
    storage inside its critical section. The cached day rolls over on the
    first lookup after local midnight in the facility timezone.
    """

    repository: CompletedWashRepository
    timezone_name: str = "UTC"
    _day: date | None = field(default=None, init=False)
    _user_ids: set[int] = field(default_factory=set, init=False)

    def has_completed(self, user_id: int, now: float) -> bool:
        """Return True when the user already washed on the day of ``now``."""
        self._roll_over(now)
        return user_id in self._user_ids

    def record(self, completion: CompletedSession) -> None:
        """Mark the session's user as done and store the completion."""
        self.mark(completion)
        self.persist(completion)

    def mark(self, completion: CompletedSession) -> None:
        """Add the session's user to the in-memory set for the day it ended.

        A session that ended on an earlier day than the cached one is left out
        of memory; it only reaches storage.
        """
        day = self.local_day(completion.ended_at)
        if self._day is None or day > self._day:
            self._day = day
            self._user_ids = set()
        if day == self._day:
            self._user_ids.add(completion.user_id)

    def persist(self, completion: CompletedSession) -> None:
        """Write one completion through to the repository."""
        self.repository.add_completion(
            user_id=completion.user_id,
            machine_id=completion.machine_id,
            day=self.local_day(completion.ended_at),
            ended_at=datetime.fromtimestamp(completion.ended_at, tz=UTC),
        )
        logger.info(
            "Wash completed",
            extra={"user_id": completion.user_id, "machine_id": completion.machine_id},
        )

    def completed_user_ids(self, now: float) -> list[int]:
        """Return today's completed user ids, sorted."""
        self._roll_over(now)
        return sorted(self._user_ids)

    def warm(self, now: float) -> None:
        """Load today's completions from storage."""
        day = self.local_day(now)
        self._day = day
        self._user_ids = set(self.repository.list_user_ids(day))

    def clear_today(self, now: float) -> None:
        """Forget today's completions in memory and in storage."""
        day = self._roll_over(now)
        self._user_ids.clear()
        self.repository.clear_day(day)

    def local_day(self, timestamp: float) -> date:
        """Return the facility-local calendar day for a timestamp."""
        tz = ZoneInfo(self.timezone_name)
        return datetime.fromtimestamp(timestamp, tz=tz).date()

    def _roll_over(self, now: float) -> date:
        day = self.local_day(now)
        if day != self._day:
            self._day = day
            self._user_ids = set()
        return day
