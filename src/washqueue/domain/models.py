"""Domain models for the wash queue."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserRecord:
    """Represents a registered facility member."""

    id: int
    name: str
    telegram_chat_id: int | None = None
