"""Domain models for machines, sessions and queues."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ActiveSession:
    """The current occupant's reservation of a machine."""

    user_id: int
    started_at: float
    ends_at: float

    def is_live(self, now: float) -> bool:
        """Return True while the session has not reached its end time."""
        return now < self.ends_at


@dataclass(frozen=True)
class QueueEntry:
    """A future reservation waiting in a machine's FIFO queue."""

    user_id: int
    duration_seconds: int
    sequence: int

    @property
    def minutes(self) -> int:
        """Return the requested duration in whole minutes."""
        return self.duration_seconds // 60


@dataclass
class Machine:
    """A single physical machine and its mutable session/queue state."""

    id: int
    name: str
    session: ActiveSession | None = None
    queue: list[QueueEntry] = field(default_factory=list)

    def live_session(self, now: float) -> ActiveSession | None:
        """Return the session if it is still running at ``now``."""
        if self.session is not None and self.session.is_live(now):
            return self.session
        return None

    def queue_index(self, user_id: int) -> int | None:
        """Return the user's 0-based queue position, or None when absent."""
        for index, entry in enumerate(self.queue):
            if entry.user_id == user_id:
                return index
        return None

    def holds(self, user_id: int, now: float) -> bool:
        """Return True when the user occupies or is queued on this machine."""
        session = self.live_session(now)
        if session is not None and session.user_id == user_id:
            return True
        return self.queue_index(user_id) is not None


@dataclass(frozen=True)
class CompletedSession:
    """A session observed to have run to its end time."""

    machine_id: int
    user_id: int
    ended_at: float
