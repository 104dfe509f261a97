"""JSON-file repository for group records."""

import json
import os
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from whatsapp_groups.domain.groups import GroupRecord
from whatsapp_groups.services.records import GroupRecordRepository, RecordStoreError


@dataclass
class JsonGroupRecordRepository(GroupRecordRepository):
    """Stores records as a JSON array, rewriting the file on each append."""

    path: Path
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def append_record(self, record: GroupRecord) -> None:
        """Append a record; writers are serialized by a process-wide lock."""
        with self._lock:
            rows = self._load()
            rows.append(record_to_json(record))
            self._write(rows)

    def list_records(self) -> list[GroupRecord]:
        """Return all records in append order."""
        with self._lock:
            rows = self._load()
        return [record_from_json(row) for row in rows]

    def _load(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise RecordStoreError(f"Unreadable record file {self.path}") from exc
        if not isinstance(data, list):
            raise RecordStoreError(f"Record file {self.path} is not a JSON array")
        return data

    def _write(self, rows: list[dict[str, object]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(rows, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def record_to_json(record: GroupRecord) -> dict[str, object]:
    """Serialize a record in the database.json layout."""
    return {
        "id": record.group_id,
        "name": record.group_label,
        "participants": list(record.participants),
        "createdAt": record.created_at.isoformat(),
        "clientNumber": record.client_contact,
    }


def record_from_json(row: dict[str, object]) -> GroupRecord:
    """Parse a database.json row."""
    return GroupRecord(
        group_id=str(row["id"]),
        group_label=str(row.get("name", "")),
        participants=[str(item) for item in row.get("participants", [])],
        created_at=datetime.fromisoformat(str(row["createdAt"])),
        client_contact=str(row.get("clientNumber", "")),
    )
