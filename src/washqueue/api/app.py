"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect

from washqueue.api.admin import router as admin_router
from washqueue.api.machines import router as machines_router
from washqueue.api.models import RegisterUser
from washqueue.app_logging import configure_logging
from washqueue.containers import AppContainer
from washqueue.domain.events import (
    MACHINES_TOPIC,
    NOTIFICATIONS_TOPIC,
    WASH_HISTORY_TOPIC,
)
from washqueue.domain.models import UserRecord
from washqueue.services.users import DuplicateUserName


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            state_container.completed_wash_service.warm(state_container.clock.now())
        except Exception:
            logger.exception("Failed to load today's completed washes")
        tasks = [asyncio.create_task(state_container.tick_runner.run())]
        if state_container.alert_service is not None:
            alerts = state_container.hub.subscribe({NOTIFICATIONS_TOPIC})
            tasks.append(asyncio.create_task(state_container.alert_service.run(alerts)))
        yield
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(machines_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/users")
    async def register_user(payload: RegisterUser, request: Request) -> dict[str, object]:
        """Register a member under a unique display name."""
        state_container: AppContainer = request.app.state.container
        try:
            user = state_container.user_service.register(
                payload.name, payload.telegram_chat_id
            )
        except DuplicateUserName as exc:
            return {"error": exc.kind, "message": str(exc)}
        except ValueError as exc:
            return {"error": "InvalidName", "message": str(exc)}
        logger.info("User registered", extra={"user_id": user.id})
        return _serialize_user(user)

    @app.get("/api/users")
    async def list_users(request: Request) -> list[dict[str, object]]:
        """Return all registered members."""
        state_container: AppContainer = request.app.state.container
        return [_serialize_user(user) for user in state_container.user_service.list_users()]

    @app.get("/api/completed")
    async def completed_today(request: Request) -> list[int]:
        """Return the ids of members who already washed today."""
        state_container: AppContainer = request.app.state.container
        return state_container.completed_wash_service.completed_user_ids(
            state_container.clock.now()
        )

    @app.websocket("/ws")
    async def updates(websocket: WebSocket) -> None:
        """Stream machine snapshots, notifications and wash history."""
        state_container: AppContainer = websocket.app.state.container
        await websocket.accept()
        queue = state_container.hub.subscribe()
        await websocket.send_json(
            {"topic": MACHINES_TOPIC, "payload": state_container.engine.snapshot()}
        )
        await websocket.send_json(
            {
                "topic": WASH_HISTORY_TOPIC,
                "payload": state_container.completed_wash_service.completed_user_ids(
                    state_container.clock.now()
                ),
            }
        )
        sender = asyncio.create_task(_forward(websocket, queue))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            sender.cancel()
            state_container.hub.unsubscribe(queue)

    return app


async def _forward(websocket: WebSocket, queue: "asyncio.Queue[dict[str, object]]") -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


def _serialize_user(user: UserRecord) -> dict[str, object]:
    return {
        "id": user.id,
        "name": user.name,
        "telegramChatId": user.telegram_chat_id,
    }
