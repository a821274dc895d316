"""Telegram delivery of pre-start notifications."""

import asyncio
import logging
from dataclasses import dataclass

from washqueue.adapters.telegram_client import TelegramClient
from washqueue.domain.events import PRE_NOTIFY
from washqueue.services.users import UserService

logger = logging.getLogger(__name__)


@dataclass
class TelegramAlertService:
    """Forward PRE_NOTIFY events to members with a Telegram chat."""

    user_service: UserService
    telegram_client: TelegramClient

    async def deliver(self, payload: object) -> bool:
        """Send one notification; return True when a message went out."""
        if not isinstance(payload, dict) or payload.get("type") != PRE_NOTIFY:
            return False
        user = self.user_service.get(int(payload["userId"]))
        if user is None or user.telegram_chat_id is None:
            return False
        await self.telegram_client.send_message(
            chat_id=user.telegram_chat_id,
            text=format_alert(payload),
        )
        return True

    async def run(self, events: "asyncio.Queue[object]") -> None:
        """Deliver notifications from a subscription until cancelled."""
        while True:
            message = await events.get()
            payload = message.get("payload") if isinstance(message, dict) else None
            try:
                await self.deliver(payload)
            except Exception:
                logger.exception("Failed to deliver Telegram alert")


def format_alert(payload: dict[str, object]) -> str:
    """Return the user-facing text for a PRE_NOTIFY payload."""
    machine_name = payload.get("machineName") or f"Machine {payload.get('machineId')}"
    minutes = payload.get("minutesUntilStart")
    return f"Your turn on {machine_name} starts in {minutes} minute(s)!"
