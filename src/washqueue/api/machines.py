"""Machine command and query endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from washqueue.api.models import LeaveCommand, WashCommand
from washqueue.domain.errors import SchedulingError
from washqueue.services.timing import format_instant

if TYPE_CHECKING:
    from washqueue.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/machines", tags=["machines"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _rejected(command: str, exc: SchedulingError) -> dict[str, str]:
    logger.info("Command rejected", extra={"command": command, "kind": exc.kind})
    return exc.to_payload()


def _minutes(container: AppContainer, command: WashCommand) -> object:
    if command.minutes is None:
        return container.settings.default_wash_minutes
    return command.minutes


@router.get("")
async def list_machines(request: Request) -> list[dict[str, object]]:
    """Return the current snapshot of every machine."""
    return _container(request).engine.snapshot()


@router.get("/queue/{machine_id}")
async def machine_queue(machine_id: int, request: Request) -> list[dict[str, object]]:
    """Return a machine's queue in FIFO order."""
    try:
        return _container(request).engine.get_queue(machine_id)
    except SchedulingError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_payload()
        ) from exc


@router.get("/{machine_id}/wait/{user_id}")
async def user_wait(machine_id: int, user_id: int, request: Request) -> dict[str, int]:
    """Return how long a user waits on a machine."""
    try:
        wait = _container(request).engine.wait_for_user(machine_id, user_id)
    except SchedulingError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=exc.to_payload()
        ) from exc
    return {"machineId": machine_id, "userId": user_id, "waitSeconds": wait}


@router.post("/join")
async def join_queue(command: WashCommand, request: Request) -> dict[str, object]:
    """Join a machine's wait-list."""
    container = _container(request)
    try:
        position = container.engine.join_queue(
            command.machine_id, command.user_id, _minutes(container, command)
        )
    except SchedulingError as exc:
        return _rejected("join", exc)
    return {"queued": True, "position": position}


@router.post("/start")
async def start_wash(command: WashCommand, request: Request) -> dict[str, object]:
    """Start, or extend, a wash on a machine."""
    container = _container(request)
    try:
        ends_at = container.engine.start_wash(
            command.machine_id, command.user_id, _minutes(container, command)
        )
    except SchedulingError as exc:
        return _rejected("start", exc)
    return {
        "started": True,
        "endTime": format_instant(ends_at),
    }


@router.post("/leave")
async def leave_queue(command: LeaveCommand, request: Request) -> dict[str, object]:
    """Withdraw from a machine's wait-list."""
    try:
        _container(request).engine.leave_queue(command.machine_id, command.user_id)
    except SchedulingError as exc:
        return _rejected("leave", exc)
    return {"left": True}


@router.post("/reset")
async def reset_machines(request: Request) -> dict[str, bool]:
    """Clear all sessions and queues."""
    _container(request).engine.reset()
    return {"reset": True}
