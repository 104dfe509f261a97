"""Supabase-backed repository for group records."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from whatsapp_groups.domain.groups import GroupRecord
from whatsapp_groups.services.records import GroupRecordRepository, RecordStoreError


@dataclass
class SupabaseGroupRecordRepository(GroupRecordRepository):
    """Supabase implementation for group records."""

    client: Client

    def append_record(self, record: GroupRecord) -> None:
        """Insert a record row."""
        response = (
            self.client.table("whatsapp_groups")
            .insert(
                {
                    "group_id": record.group_id,
                    "group_name": record.group_label,
                    "participants": list(record.participants),
                    "created_at": record.created_at.isoformat(),
                    "client_number": record.client_contact,
                }
            )
            .execute()
        )
        if not response.data:
            raise RecordStoreError("Failed to insert group record in Supabase")

    def list_records(self) -> list[GroupRecord]:
        """Return records ordered by creation time."""
        response = (
            self.client.table("whatsapp_groups")
            .select("group_id, group_name, participants, created_at, client_number")
            .order("created_at")
            .execute()
        )
        return [
            GroupRecord(
                group_id=row["group_id"],
                group_label=row["group_name"],
                participants=list(row.get("participants") or []),
                created_at=datetime.fromisoformat(row["created_at"]),
                client_contact=row.get("client_number") or "",
            )
            for row in response.data or []
        ]
