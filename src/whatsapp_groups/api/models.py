"""Pydantic models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from whatsapp_groups.domain.connection import BackendEventType
from whatsapp_groups.domain.groups import GroupRecord, ProvisionResult


class CreateGroupRequest(BaseModel):
    """Body of a group provisioning request."""

    model_config = ConfigDict(populate_by_name=True)

    phone: str | None = None
    group_name: str | None = Field(default=None, alias="groupName")


class ParticipantBreakdown(BaseModel):
    """Who was invited to a group."""

    admin: str
    client: str
    designers: list[str]


class CreateGroupResponse(BaseModel):
    """Successful provisioning response."""

    success: bool = True
    message: str
    groupId: str  # noqa: N815
    groupName: str  # noqa: N815
    participants: ParticipantBreakdown

    @classmethod
    def from_result(cls, result: ProvisionResult) -> "CreateGroupResponse":
        """Build the response body from a workflow result."""
        return cls(
            message=result.message,
            groupId=result.group_id,
            groupName=result.group_label,
            participants=ParticipantBreakdown(
                admin=result.participants.owner,
                client=result.participants.client,
                designers=result.participants.designers,
            ),
        )


class GatewayEvent(BaseModel):
    """Lifecycle event pushed by the WhatsApp gateway."""

    type: BackendEventType
    qr: str | None = None
    identity: str | None = None
    reason: str | None = None


class GroupRecordModel(BaseModel):
    """Persisted group record as exposed by the listing endpoints."""

    id: str
    name: str
    participants: list[str]
    createdAt: datetime  # noqa: N815
    clientNumber: str  # noqa: N815

    @classmethod
    def from_record(cls, record: GroupRecord) -> "GroupRecordModel":
        """Build the API model from a domain record."""
        return cls(
            id=record.group_id,
            name=record.group_label,
            participants=record.participants,
            createdAt=record.created_at,
            clientNumber=record.client_contact,
        )
