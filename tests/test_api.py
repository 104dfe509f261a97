"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from whatsapp_groups.api.app import create_app
from whatsapp_groups.containers import AppContainer
from whatsapp_groups.services.connection import SessionStateMachine
from whatsapp_groups.services.records import RecordStoreError
from tests.conftest import (
    GROUP_ID,
    FakeBackendClient,
    InMemoryGroupRecordRepository,
    make_ready,
)


def test_create_group_end_to_end(
    container: AppContainer,
    backend: FakeBackendClient,
    record_repository: InMemoryGroupRecordRepository,
    session: SessionStateMachine,
) -> None:
    make_ready(session)
    app = create_app(container)

    with TestClient(app) as client:
        response = client.post(
            "/create-group",
            json={"phone": "0100000000", "groupName": "Acme Project"},
        )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "تم إنشاء الجروب بنجاح",
        "groupId": GROUP_ID,
        "groupName": "Acme Project",
        "participants": {
            "admin": "201012345678",
            "client": "20100000000",
            "designers": ["201098765432", "201011111111"],
        },
    }
    assert backend.connected == 1
    assert [record.group_id for record in record_repository.records] == [GROUP_ID]


def test_create_group_requires_group_name(
    container: AppContainer, backend: FakeBackendClient, session: SessionStateMachine
) -> None:
    make_ready(session)
    client = TestClient(create_app(container))

    response = client.post(
        "/create-group", json={"phone": "0100000000", "groupName": ""}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Group name is required"}
    assert backend.calls == 0


def test_create_group_requires_phone(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/create-group", json={"groupName": "Acme"})

    assert response.status_code == 400
    assert response.json() == {"error": "Phone number is required"}


def test_create_group_while_pairing_is_unavailable(
    container: AppContainer, backend: FakeBackendClient
) -> None:
    client = TestClient(create_app(container))
    client.post("/gateway/events", json={"type": "qr", "qr": "qr-code"})

    response = client.post(
        "/create-group", json={"phone": "0100000000", "groupName": "Acme"}
    )

    assert response.status_code == 503
    assert response.json()["error"] == "WhatsApp client is not ready"
    assert "message" in response.json()
    assert backend.calls == 0


def test_create_group_failure_includes_details_locally(
    container: AppContainer, backend: FakeBackendClient, session: SessionStateMachine
) -> None:
    make_ready(session)
    backend.group_id = None
    client = TestClient(create_app(container))

    response = client.post(
        "/create-group", json={"phone": "0100000000", "groupName": "Acme"}
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to create group",
        "details": "Backend returned no group id",
    }


def test_create_group_failure_hides_details_in_production(
    container: AppContainer, backend: FakeBackendClient, session: SessionStateMachine
) -> None:
    make_ready(session)
    backend.group_id = None
    container.settings.environment = "production"
    client = TestClient(create_app(container))

    response = client.post(
        "/create-group", json={"phone": "0100000000", "groupName": "Acme"}
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create group"}


def test_status_follows_gateway_events(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    client.post("/gateway/events", json={"type": "qr", "qr": "qr-code"})
    pairing = client.get("/api/whatsapp-status").json()
    client.post("/gateway/events", json={"type": "authenticated"})
    client.post(
        "/gateway/events", json={"type": "ready", "identity": "201012345678@c.us"}
    )
    ready = client.get("/api/whatsapp-status").json()
    client.post("/gateway/events", json={"type": "disconnected", "reason": "LOGOUT"})
    disconnected = client.get("/api/whatsapp-status").json()

    assert pairing == {
        "ready": False,
        "state": "AWAITING_PAIRING",
        "qr": "qr-code",
        "info": None,
    }
    assert ready == {
        "ready": True,
        "state": "READY",
        "qr": None,
        "info": {"identity": "201012345678@c.us"},
    }
    assert disconnected["state"] == "DISCONNECTED"
    assert disconnected["ready"] is False


def test_gateway_events_require_token_when_configured(
    container: AppContainer,
) -> None:
    container.settings.gateway_events_token = "gw-token"
    client = TestClient(create_app(container))

    rejected = client.post("/gateway/events", json={"type": "qr", "qr": "x"})
    accepted = client.post(
        "/gateway/events",
        json={"type": "qr", "qr": "x"},
        headers={"X-Gateway-Token": "gw-token"},
    )

    assert rejected.status_code == 401
    assert accepted.json() == {"state": "AWAITING_PAIRING"}


def test_health_reports_readiness(
    container: AppContainer, session: SessionStateMachine
) -> None:
    client = TestClient(create_app(container))
    before = client.get("/health").json()
    make_ready(session)
    after = client.get("/health").json()

    assert before["status"] == "OK"
    assert before["whatsappReady"] is False
    assert after["whatsappReady"] is True


def test_list_groups_returns_records(
    container: AppContainer, session: SessionStateMachine
) -> None:
    make_ready(session)

    with TestClient(create_app(container)) as client:
        client.post("/create-group", json={"phone": "0100000000", "groupName": "A"})
    with TestClient(create_app(container)) as client:
        response = client.get("/api/groups")

    groups = response.json()["groups"]
    assert [group["name"] for group in groups] == ["A"]
    assert groups[0]["clientNumber"] == "20100000000"


def test_list_groups_reports_unreadable_store(
    container: AppContainer, record_repository: InMemoryGroupRecordRepository
) -> None:
    record_repository.list_error = RecordStoreError("Unreadable record file")
    client = TestClient(create_app(container))

    response = client.get("/api/groups")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to load groups",
        "details": "Unreadable record file",
    }
