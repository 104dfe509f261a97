"""Tests for admin endpoints."""

from datetime import UTC, datetime

from fastapi.testclient import TestClient

from whatsapp_groups.api.app import create_app
from whatsapp_groups.containers import AppContainer
from whatsapp_groups.domain.groups import GroupRecord, RosterEntry
from whatsapp_groups.services.records import RecordStoreError
from tests.conftest import GROUP_ID, FakeBackendClient, InMemoryGroupRecordRepository

HEADERS = {"X-Admin-Token": "admin-token"}


def test_admin_health_requires_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health")

    assert response.status_code == 401


def test_admin_health_accepts_valid_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_admin_groups_newest_first(
    container: AppContainer, record_repository: InMemoryGroupRecordRepository
) -> None:
    for minute, label in enumerate(["First", "Second"]):
        record_repository.records.append(
            GroupRecord(
                group_id=f"{minute}@g.us",
                group_label=label,
                participants=["201012345678"],
                created_at=datetime(2026, 10, 1, 12, minute, tzinfo=UTC),
                client_contact="20100000000",
            )
        )
    client = TestClient(create_app(container))

    response = client.get("/admin/groups", headers=HEADERS)

    assert response.status_code == 200
    assert [group["name"] for group in response.json()["groups"]] == [
        "Second",
        "First",
    ]


def test_admin_session_detail(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/admin/session", headers=HEADERS)

    assert response.json() == {
        "state": "DISCONNECTED",
        "ready": False,
        "identity": None,
        "pending_follow_ups": 0,
    }


def test_admin_group_roster(
    container: AppContainer, backend: FakeBackendClient
) -> None:
    backend.roster = [
        RosterEntry(identity="201012345678", is_admin=True, is_super_admin=True),
        RosterEntry(identity="20100000000", is_admin=True),
    ]
    client = TestClient(create_app(container))

    response = client.get(f"/admin/groups/{GROUP_ID}/roster", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["participants"][1] == {
        "identity": "20100000000",
        "is_admin": True,
        "is_super_admin": False,
    }


def test_admin_groups_reports_unreadable_store(
    container: AppContainer, record_repository: InMemoryGroupRecordRepository
) -> None:
    record_repository.list_error = RecordStoreError("Unreadable record file")
    client = TestClient(create_app(container))

    response = client.get("/admin/groups", headers=HEADERS)

    assert response.status_code == 500
    assert response.json() == {"detail": "Unreadable record file"}
