"""Outbound event models and broadcast topics."""

from dataclasses import dataclass

MACHINES_TOPIC = "machines"
NOTIFICATIONS_TOPIC = "notifications"
WASH_HISTORY_TOPIC = "washHistory"

PRE_NOTIFY = "PRE_NOTIFY"


@dataclass(frozen=True)
class PreNotifyEvent:
    """One-shot "starting soon" notification for a queued user."""

    machine_id: int
    machine_name: str
    user_id: int
    minutes_until_start: int

    def to_payload(self) -> dict[str, object]:
        """Return the wire representation published to subscribers."""
        return {
            "type": PRE_NOTIFY,
            "userId": self.user_id,
            "machineId": self.machine_id,
            "machineName": self.machine_name,
            "minutesUntilStart": self.minutes_until_start,
        }

