"""Domain models for group provisioning."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class GroupProvisionRequest:
    """A single inbound ask to provision a group."""

    client_contact: str | None
    group_label: str | None
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True)
class ParticipantSet:
    """Deduplicated, order-stable participants of a group."""

    owner: str
    client: str
    fixed_roster: tuple[str, ...]

    @property
    def members(self) -> list[str]:
        """Return owner, client and roster with duplicates removed."""
        seen: set[str] = set()
        ordered: list[str] = []
        for identity in (self.owner, self.client, *self.fixed_roster):
            if identity and identity not in seen:
                seen.add(identity)
                ordered.append(identity)
        return ordered

    @property
    def designers(self) -> list[str]:
        """Return roster members that are neither the owner nor the client."""
        return [
            identity
            for identity in self.members
            if identity not in {self.owner, self.client}
        ]

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class GroupHandle:
    """Backend reference to a created group."""

    group_id: str | None
    title: str | None = None


@dataclass(frozen=True)
class RosterEntry:
    """Participant of a backend group with its admin flags."""

    identity: str
    is_admin: bool
    is_super_admin: bool = False


@dataclass(frozen=True)
class GroupRecord:
    """Durable record of a provisioned group."""

    group_id: str
    group_label: str
    participants: list[str]
    created_at: datetime
    client_contact: str


@dataclass(frozen=True)
class PromotionOutcome:
    """Result of promoting a set of participants."""

    targets: list[str]
    succeeded: bool
    attempts_used: int


@dataclass(frozen=True)
class ProvisionResult:
    """Synchronous result returned once the group exists."""

    group_id: str
    group_label: str
    participants: ParticipantSet
    message: str
