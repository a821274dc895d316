"""Machine queue and wait-time scheduling engine."""

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Protocol

from washqueue.domain.errors import (
    AlreadyCompletedToday,
    AlreadyReserved,
    InvalidDuration,
    MachineBusy,
    MachineNotFound,
    NotQueued,
    QueueBlocksStart,
)
from washqueue.domain.events import (
    MACHINES_TOPIC,
    NOTIFICATIONS_TOPIC,
    WASH_HISTORY_TOPIC,
    PreNotifyEvent,
)
from washqueue.domain.machines import ActiveSession, CompletedSession, Machine, QueueEntry
from washqueue.services.clock import Clock
from washqueue.services.notifications import NotificationScheduler
from washqueue.services.timing import (
    active_remaining_seconds,
    format_instant,
    total_occupied_seconds,
    wait_seconds_for_user,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WASH_MINUTES = 240


class EventPublisher(Protocol):
    """Interface for handing payloads to the broadcast layer."""

    def publish(self, topic: str, payload: object) -> None:
        """Publish a payload on a topic."""


class CompletionTracker(Protocol):
    """Interface for the daily completed-wash guard."""

    def has_completed(self, user_id: int, now: float) -> bool:
        """Return True when the user already washed today."""

    def mark(self, completion: CompletedSession) -> None:
        """Remember a finished session in memory."""

    def persist(self, completion: CompletedSession) -> None:
        """Store a finished session."""

    def completed_user_ids(self, now: float) -> list[int]:
        """Return today's completed user ids."""


@dataclass(frozen=True)
class TickResult:
    """What a tick observed."""

    completed: list[CompletedSession]
    notifications: list[PreNotifyEvent]


@dataclass
class _Outbox:
    now: float
    completed: list[CompletedSession] = field(default_factory=list)
    notifications: list[PreNotifyEvent] = field(default_factory=list)
    snapshot: list[dict[str, object]] | None = None
    changed: bool = False


def build_machines(count: int) -> list[Machine]:
    """Create the fixed machine pool, numbered from 1."""
    return [Machine(id=index, name=f"Machine {index}") for index in range(1, count + 1)]


@dataclass
class SchedulingEngine:
    """Authoritative owner of machine sessions and queues.

    Every read and write happens under one re-entrant lock. Each command first
    expires sessions that ran out and marks their users as done for the day,
    so admission checks never see a stale occupant. Events produced by a
    command are collected inside the lock and published after it is released.
    """

    machines: Iterable[Machine]
    clock: Clock
    notifier: NotificationScheduler
    completions: CompletionTracker
    publisher: EventPublisher
    max_minutes: int = DEFAULT_MAX_WASH_MINUTES
    _machines: dict[int, Machine] = field(init=False)
    _lock: threading.RLock = field(init=False, default_factory=threading.RLock)
    _sequence: int = field(init=False, default=0)

    def __post_init__(self) -> None:
        self._machines = {machine.id: machine for machine in self.machines}

    def join_queue(self, machine_id: int, user_id: int, minutes: object) -> int:
        """Append the user to a machine's queue and return the 1-based position."""
        with self._command() as outbox:
            machine = self._require_machine(machine_id)
            self._require_not_completed(user_id, outbox.now)
            holder = self._holder_of(user_id, outbox.now)
            if holder is not None:
                raise AlreadyReserved(
                    f"User {user_id} already holds a place on {holder.name}"
                )
            duration = duration_seconds(minutes, self.max_minutes)
            self._sequence += 1
            machine.queue.append(
                QueueEntry(
                    user_id=user_id,
                    duration_seconds=duration,
                    sequence=self._sequence,
                )
            )
            position = len(machine.queue)
            outbox.changed = True
        logger.info(
            "User joined queue",
            extra={"machine_id": machine_id, "user_id": user_id, "position": position},
        )
        return position

    def start_wash(self, machine_id: int, user_id: int, minutes: object) -> float:
        """Start or extend a session and return its end timestamp."""
        with self._command() as outbox:
            now = outbox.now
            machine = self._require_machine(machine_id)
            duration = duration_seconds(minutes, self.max_minutes)
            self._require_not_completed(user_id, now)
            if machine.session is not None:
                if machine.session.user_id != user_id:
                    raise MachineBusy(f"{machine.name} is in use")
            else:
                holder = self._holder_of(user_id, now)
                if holder is not None and holder.id != machine.id:
                    raise AlreadyReserved(
                        f"User {user_id} already holds a place on {holder.name}"
                    )
                if machine.queue and machine.queue[0].user_id != user_id:
                    raise QueueBlocksStart(
                        f"{machine.name} has users waiting ahead of {user_id}"
                    )
                if machine.queue:
                    machine.queue.pop(0)
                    self.notifier.clear(machine.id, user_id)
            machine.session = ActiveSession(
                user_id=user_id,
                started_at=now,
                ends_at=now + duration,
            )
            ends_at = machine.session.ends_at
            outbox.changed = True
        logger.info(
            "Wash started",
            extra={"machine_id": machine_id, "user_id": user_id, "ends_at": ends_at},
        )
        return ends_at

    def leave_queue(self, machine_id: int, user_id: int) -> None:
        """Withdraw a queued user and forget their notification record."""
        with self._command() as outbox:
            machine = self._require_machine(machine_id)
            index = machine.queue_index(user_id)
            if index is None:
                raise NotQueued(f"User {user_id} is not queued on {machine.name}")
            del machine.queue[index]
            self.notifier.clear(machine.id, user_id)
            outbox.changed = True
        logger.info(
            "User left queue", extra={"machine_id": machine_id, "user_id": user_id}
        )

    def tick(self, now: float | None = None) -> TickResult:
        """Expire finished sessions and fire due notifications."""
        with self._command(now) as outbox:
            pass
        return TickResult(
            completed=outbox.completed, notifications=outbox.notifications
        )

    def reset(self) -> None:
        """Clear every session, queue and notification record."""
        with self._command() as outbox:
            for machine in self._machines.values():
                machine.session = None
                machine.queue.clear()
            self.notifier.reset()
            outbox.changed = True
        logger.info("Machines reset")

    def snapshot(self, now: float | None = None) -> list[dict[str, object]]:
        """Return the broadcast view of every machine."""
        with self._lock:
            return self._snapshot(self.clock.now() if now is None else now)

    def get_queue(self, machine_id: int) -> list[dict[str, object]]:
        """Return a machine's queue in FIFO order."""
        with self._lock:
            machine = self._require_machine(machine_id)
            return _serialize_queue(machine)

    def wait_for_user(self, machine_id: int, user_id: int) -> int:
        """Return the user's current wait on a machine."""
        with self._lock:
            machine = self._require_machine(machine_id)
            return wait_seconds_for_user(machine, user_id, self.clock.now())

    def notified_pairs(self) -> list[tuple[int, int]]:
        """Return the (machine, user) pairs notified for their current entry."""
        with self._lock:
            return self.notifier.notified_pairs()

    def machine_ids(self) -> list[int]:
        """Return the ids of the fixed machine pool."""
        return list(self._machines)

    @contextmanager
    def _command(self, now: float | None = None) -> Iterator[_Outbox]:
        outbox: _Outbox | None = None
        try:
            with self._lock:
                current = self.clock.now() if now is None else now
                outbox = _Outbox(now=current, completed=self._expire(current))
                try:
                    yield outbox
                finally:
                    outbox.notifications = self.notifier.evaluate(
                        self._machines.values(), current
                    )
                    if outbox.changed or outbox.completed:
                        outbox.snapshot = self._snapshot(current)
        finally:
            if outbox is not None:
                self._dispatch(outbox)

    def _require_machine(self, machine_id: int) -> Machine:
        machine = self._machines.get(machine_id)
        if machine is None:
            raise MachineNotFound(f"Machine {machine_id} not found")
        return machine

    def _require_not_completed(self, user_id: int, now: float) -> None:
        if self.completions.has_completed(user_id, now):
            raise AlreadyCompletedToday(f"User {user_id} already washed today")

    def _holder_of(self, user_id: int, now: float) -> Machine | None:
        for machine in self._machines.values():
            if machine.holds(user_id, now):
                return machine
        return None

    def _expire(self, now: float) -> list[CompletedSession]:
        completed = []
        for machine in self._machines.values():
            session = machine.session
            if session is not None and not session.is_live(now):
                completion = CompletedSession(
                    machine_id=machine.id,
                    user_id=session.user_id,
                    ended_at=session.ends_at,
                )
                self.completions.mark(completion)
                completed.append(completion)
                machine.session = None
        return completed

    def _snapshot(self, now: float) -> list[dict[str, object]]:
        return [_serialize_machine(machine, now) for machine in self._machines.values()]

    def _dispatch(self, outbox: _Outbox) -> None:
        for completion in outbox.completed:
            try:
                self.completions.persist(completion)
            except Exception:
                logger.exception(
                    "Failed to record completed wash",
                    extra={"user_id": completion.user_id},
                )
        if outbox.snapshot is not None:
            self._publish(MACHINES_TOPIC, outbox.snapshot)
        for event in outbox.notifications:
            self._publish(NOTIFICATIONS_TOPIC, event.to_payload())
        if outbox.completed:
            self._publish(
                WASH_HISTORY_TOPIC, self.completions.completed_user_ids(outbox.now)
            )

    def _publish(self, topic: str, payload: object) -> None:
        try:
            self.publisher.publish(topic, payload)
        except Exception:
            logger.exception("Failed to publish event", extra={"topic": topic})


def duration_seconds(
    minutes: object, max_minutes: int = DEFAULT_MAX_WASH_MINUTES
) -> int:
    """Validate a requested duration in minutes and convert it to seconds."""
    if isinstance(minutes, bool) or not isinstance(minutes, int | float):
        raise InvalidDuration(f"Duration must be a whole number of minutes: {minutes!r}")
    if isinstance(minutes, float) and not minutes.is_integer():
        raise InvalidDuration(f"Duration must be a whole number of minutes: {minutes!r}")
    if minutes <= 0:
        raise InvalidDuration(f"Duration must be positive: {minutes!r}")
    if minutes > max_minutes:
        raise InvalidDuration(
            f"Duration must not exceed {max_minutes} minutes: {minutes!r}"
        )
    return int(minutes) * 60


def _serialize_queue(machine: Machine) -> list[dict[str, object]]:
    return [
        {"userId": entry.user_id, "minutes": entry.minutes} for entry in machine.queue
    ]


def _serialize_machine(machine: Machine, now: float) -> dict[str, object]:
    session = machine.live_session(now)
    return {
        "id": machine.id,
        "name": machine.name,
        "inUse": session is not None,
        "currentUserId": session.user_id if session else None,
        "endTime": format_instant(session.ends_at) if session else None,
        "remainingSeconds": active_remaining_seconds(machine, now),
        "totalWaitSeconds": total_occupied_seconds(machine, now),
        "queue": _serialize_queue(machine),
    }
