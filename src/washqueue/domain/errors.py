"""Scheduling errors surfaced to callers with stable kinds."""


class SchedulingError(Exception):
    """Base class for rejected scheduling commands."""

    kind = "SchedulingError"

    def to_payload(self) -> dict[str, str]:
        return {"error": self.kind, "message": str(self)}


class MachineNotFound(SchedulingError):
    kind = "NotFound"


class InvalidDuration(SchedulingError):
    kind = "InvalidDuration"


class AlreadyReserved(SchedulingError):
    kind = "AlreadyReserved"


class AlreadyCompletedToday(SchedulingError):
    kind = "AlreadyCompletedToday"


class QueueBlocksStart(SchedulingError):
    kind = "QueueBlocksStart"


class MachineBusy(SchedulingError):
    kind = "MachineBusy"


class NotQueued(SchedulingError):
    kind = "NotQueued"
