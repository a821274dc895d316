"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from washqueue.adapters.broadcast import BroadcastHub
from washqueue.adapters.supabase_completed_wash_repository import (
    SupabaseCompletedWashRepository,
)
from washqueue.adapters.supabase_user_repository import SupabaseUserRepository
from washqueue.adapters.telegram_client import HttpxTelegramClient
from washqueue.config import Settings, parse_telegram_token
from washqueue.services.alerts import TelegramAlertService
from washqueue.services.clock import Clock, SystemClock
from washqueue.services.completions import CompletedWashService
from washqueue.services.notifications import NotificationScheduler
from washqueue.services.scheduling import SchedulingEngine, build_machines
from washqueue.services.ticker import TickRunner
from washqueue.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    hub: BroadcastHub
    engine: SchedulingEngine
    completed_wash_service: CompletedWashService
    user_service: UserService
    tick_runner: TickRunner
    alert_service: TelegramAlertService | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    clock = SystemClock()
    hub = BroadcastHub()
    user_service = UserService(SupabaseUserRepository(supabase_client))
    completed_wash_service = CompletedWashService(
        repository=SupabaseCompletedWashRepository(supabase_client),
        timezone_name=resolved_settings.facility_timezone,
    )
    notifier = NotificationScheduler(
        lead_window_seconds=resolved_settings.lead_window_seconds
    )
    engine = SchedulingEngine(
        machines=build_machines(resolved_settings.machine_count),
        clock=clock,
        notifier=notifier,
        completions=completed_wash_service,
        publisher=hub,
        max_minutes=resolved_settings.max_wash_minutes,
    )
    tick_runner = TickRunner(
        engine=engine, interval_seconds=resolved_settings.tick_interval_seconds
    )
    alert_service = None
    telegram_client = None
    bot_token = parse_telegram_token(resolved_settings.telegram_bot_token)
    if bot_token is not None:
        telegram_client = HttpxTelegramClient.create(bot_token)
        alert_service = TelegramAlertService(
            user_service=user_service, telegram_client=telegram_client
        )

    async def close_resources() -> None:
        if telegram_client is not None:
            await telegram_client.close()

    return AppContainer(
        settings=resolved_settings,
        clock=clock,
        hub=hub,
        engine=engine,
        completed_wash_service=completed_wash_service,
        user_service=user_service,
        tick_runner=tick_runner,
        alert_service=alert_service,
        close_resources=close_resources,
    )
