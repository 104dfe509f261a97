"""Append-only access to provisioned group records."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from whatsapp_groups.domain.groups import GroupRecord


class RecordStoreError(RuntimeError):
    """Raised when the record store cannot be read or written safely."""


class GroupRecordRepository(Protocol):
    """Persistence interface for group records."""

    def append_record(self, record: GroupRecord) -> None:
        """Append a record to the stored collection."""

    def list_records(self) -> list[GroupRecord]:
        """Return all records in append order."""


@dataclass
class GroupRecordService:
    """Gateway used by the workflow to persist and list group records."""

    repository: GroupRecordRepository

    async def append(self, record: GroupRecord) -> None:
        """Persist a record without blocking the event loop."""
        if not record.group_id:
            raise ValueError("Group records require a backend-confirmed group id")
        await asyncio.to_thread(self.repository.append_record, record)

    async def list_records(self) -> list[GroupRecord]:
        """Return every stored record without blocking the event loop."""
        return await asyncio.to_thread(self.repository.list_records)
