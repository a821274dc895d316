"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from washqueue.domain.events import WASH_HISTORY_TOPIC

if TYPE_CHECKING:
    from washqueue.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/completed/clear", dependencies=[Depends(require_admin)])
async def clear_completed(request: Request) -> dict[str, bool]:
    """Start a new day: forget who already washed today."""
    container: AppContainer = request.app.state.container
    container.completed_wash_service.clear_today(container.clock.now())
    container.hub.publish(WASH_HISTORY_TOPIC, [])
    return {"cleared": True}


@router.get("/notifications", dependencies=[Depends(require_admin)])
async def notification_records(request: Request) -> dict[str, object]:
    """Return the (machine, user) pairs already notified."""
    container: AppContainer = request.app.state.container
    return {
        "notified": [
            {"machineId": machine_id, "userId": user_id}
            for machine_id, user_id in container.engine.notified_pairs()
        ]
    }
