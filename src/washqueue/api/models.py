"""Pydantic models for inbound API commands."""

from typing import Any

from pydantic import BaseModel, Field, StrictInt


class WashCommand(BaseModel):
    """Join or start command payload.

    ``minutes`` is accepted as-is and validated by the engine so clients get
    an ``InvalidDuration`` error rather than a schema error.
    """

    machine_id: StrictInt = Field(alias="machineId")
    user_id: StrictInt = Field(alias="userId")
    minutes: Any = None


class LeaveCommand(BaseModel):
    """Leave-queue command payload."""

    machine_id: StrictInt = Field(alias="machineId")
    user_id: StrictInt = Field(alias="userId")


class RegisterUser(BaseModel):
    """User registration payload."""

    name: str
    telegram_chat_id: StrictInt | None = Field(default=None, alias="telegramChatId")
