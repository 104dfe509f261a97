"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from whatsapp_groups.adapters.whatsapp_gateway_client import BackendClient
from whatsapp_groups.config import Settings
from whatsapp_groups.containers import AppContainer, build_provisioning_service
from whatsapp_groups.domain.connection import BackendEvent, BackendEventType
from whatsapp_groups.domain.groups import GroupHandle, GroupRecord, RosterEntry
from whatsapp_groups.services.background import BackgroundTaskRunner
from whatsapp_groups.services.connection import SessionStateMachine
from whatsapp_groups.services.records import GroupRecordRepository, GroupRecordService

GROUP_ID = "120363000000000001@g.us"


@dataclass
class FakeBackendClient(BackendClient):
    """Fake backend that records every call."""

    group_id: str | None = GROUP_ID
    create_errors: list[Exception] = field(default_factory=list)
    promote_failures: int = 0
    message_error: Exception | None = None
    promote_gate: asyncio.Event | None = None
    connected: int = 0
    created: list[tuple[str, list[str], dict[str, object] | None]] = field(
        default_factory=list
    )
    promoted: list[list[str]] = field(default_factory=list)
    messages: list[tuple[str | None, str]] = field(default_factory=list)
    roster: list[RosterEntry] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.created) + len(self.promoted) + len(self.messages)

    async def connect(self) -> None:
        self.connected += 1

    async def create_group(
        self,
        label: str,
        participants: list[str],
        options: dict[str, object] | None = None,
    ) -> GroupHandle:
        self.created.append((label, list(participants), options))
        if self.create_errors:
            raise self.create_errors.pop(0)
        return GroupHandle(group_id=self.group_id, title=label)

    async def promote_participants(
        self, group: GroupHandle, identities: list[str]
    ) -> None:
        if self.promote_gate is not None:
            await self.promote_gate.wait()
        self.promoted.append(list(identities))
        if self.promote_failures > 0:
            self.promote_failures -= 1
            raise RuntimeError("not a participant yet")

    async def send_message(self, group: GroupHandle, text: str) -> None:
        if self.message_error is not None:
            raise self.message_error
        self.messages.append((group.group_id, text))

    async def get_group_info(self, group: GroupHandle) -> list[RosterEntry]:
        return list(self.roster)


@dataclass
class InMemoryGroupRecordRepository(GroupRecordRepository):
    """In-memory record repository for tests."""

    records: list[GroupRecord] = field(default_factory=list)
    error: Exception | None = None
    list_error: Exception | None = None

    def append_record(self, record: GroupRecord) -> None:
        if self.error is not None:
            raise self.error
        self.records.append(record)

    def list_records(self) -> list[GroupRecord]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.records)


@dataclass
class RecordingSleep:
    """Sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


def make_ready(session: SessionStateMachine) -> None:
    """Drive a session through pairing to ready."""
    session.handle_event(
        BackendEvent(type=BackendEventType.PAIRING_CHALLENGE, challenge="qr-1")
    )
    session.handle_event(BackendEvent(type=BackendEventType.AUTHENTICATED))
    session.handle_event(
        BackendEvent(type=BackendEventType.READY, identity="201012345678@c.us")
    )


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        admin_token="admin-token",
        admin_number="201012345678@c.us",
        designers="201098765432@c.us, 201011111111@c.us",
        settling_seconds=0,
        promotion_backoff_seconds=0,
        database_path=str(tmp_path / "database.json"),
        environment="local",
    )


@pytest.fixture
def backend() -> FakeBackendClient:
    return FakeBackendClient()


@pytest.fixture
def record_repository() -> InMemoryGroupRecordRepository:
    return InMemoryGroupRecordRepository()


@pytest.fixture
def session() -> SessionStateMachine:
    return SessionStateMachine()


@pytest.fixture
def container(
    settings: Settings,
    backend: FakeBackendClient,
    record_repository: InMemoryGroupRecordRepository,
    session: SessionStateMachine,
) -> AppContainer:
    record_service = GroupRecordService(record_repository)
    runner = BackgroundTaskRunner()
    provisioning_service = build_provisioning_service(
        settings,
        backend=backend,
        session=session,
        records=record_service,
        runner=runner,
    )

    async def close_resources() -> None:
        await runner.drain()

    return AppContainer(
        settings=settings,
        backend_client=backend,
        session=session,
        record_service=record_service,
        provisioning_service=provisioning_service,
        background_runner=runner,
        close_resources=close_resources,
    )
