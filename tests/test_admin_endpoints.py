"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from washqueue.api.app import create_app
from washqueue.containers import AppContainer
from washqueue.domain.machines import CompletedSession
from tests.conftest import ManualClock

HEADERS = {"X-Admin-Token": "admin-token"}


def test_admin_requires_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    assert client.get("/admin/health", headers={"X-Admin-Token": "nope"}).status_code == 401
    assert client.get("/admin/health", headers=HEADERS).json() == {"status": "ok"}


def test_clear_completed_allows_new_wash(
    container: AppContainer, clock: ManualClock
) -> None:
    client = TestClient(create_app(container))
    container.completed_wash_service.record(
        CompletedSession(machine_id=1, user_id=4, ended_at=clock.now())
    )

    response = client.post("/admin/completed/clear", headers=HEADERS)

    assert response.json() == {"cleared": True}
    assert client.get("/api/completed").json() == []
    joined = client.post(
        "/api/machines/join", json={"machineId": 1, "userId": 4, "minutes": 10}
    )
    assert joined.json()["queued"] is True


def test_notification_records(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.post("/api/machines/join", json={"machineId": 3, "userId": 6, "minutes": 10})

    response = client.get("/admin/notifications", headers=HEADERS)

    assert response.json() == {"notified": [{"machineId": 3, "userId": 6}]}
