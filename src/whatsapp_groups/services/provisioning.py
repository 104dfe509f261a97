"""Group provisioning workflow."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from whatsapp_groups.adapters.whatsapp_gateway_client import (
    BackendClient,
    BackendError,
    BackendUnavailable,
    CreateRejected,
)
from whatsapp_groups.domain.groups import (
    GroupHandle,
    GroupProvisionRequest,
    GroupRecord,
    ParticipantSet,
    ProvisionResult,
)
from whatsapp_groups.services.background import BackgroundTaskRunner
from whatsapp_groups.services.connection import SessionStateMachine
from whatsapp_groups.services.phone import PhoneNumberFormatter
from whatsapp_groups.services.promotion import PromotionRetryCoordinator
from whatsapp_groups.services.records import GroupRecordService

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "تم إنشاء الجروب بنجاح"
PAIRING_HINT = "يرجى ربط WhatsApp أولاً من خلال مسح رمز QR"

_MISSING_FIELD_ERRORS = {
    "phone": "Phone number is required",
    "groupName": "Group name is required",
}


class ProvisioningError(Exception):
    """Base class for failures reported to the caller."""

    status_code = 500
    error = "Internal server error"

    def __init__(
        self, message: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(details or message or self.error)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, str]:
        """Return the JSON body describing this failure."""
        payload = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.details:
            payload["details"] = self.details
        return payload


class MissingInput(ProvisioningError):
    """A required request field was absent or blank."""

    status_code = 400

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        self.error = _MISSING_FIELD_ERRORS.get(field_name, f"{field_name} is required")
        super().__init__()


class InvalidInput(ProvisioningError):
    """A request field could not be interpreted."""

    status_code = 400

    def __init__(self, field_name: str, details: str | None = None) -> None:
        self.field_name = field_name
        self.error = f"Invalid {field_name}"
        super().__init__(details=details)


class BackendNotReady(ProvisioningError):
    """The WhatsApp session is not ready to take requests."""

    status_code = 503
    error = "WhatsApp client is not ready"


class InsufficientParticipants(ProvisioningError):
    """The group would not contain two distinct parties."""

    status_code = 400
    error = "A group needs at least two distinct participants"


class GroupCreationFailed(ProvisioningError):
    """The backend did not produce a usable group."""

    error = "Failed to create group"


class InternalError(ProvisioningError):
    """Unexpected failure while provisioning."""

    error = "Internal error"


@dataclass
class ProvisioningService:
    """Create groups synchronously and finish the follow-up in the background."""

    backend: BackendClient
    session: SessionStateMachine
    formatter: PhoneNumberFormatter
    promotion: PromotionRetryCoordinator
    records: GroupRecordService
    runner: BackgroundTaskRunner
    owner: str
    designers: tuple[str, ...]
    welcome_template: str
    settling_seconds: float = 2.0
    create_options: dict[str, object] = field(default_factory=dict)
    create_fallback_enabled: bool = True
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    async def provision_group(self, request: GroupProvisionRequest) -> ProvisionResult:
        """Create the group and return once the backend has confirmed it.

        Promotion, the welcome message and persistence run afterwards on the
        background runner; their failures are logged and never reach the
        caller.
        """
        try:
            return await self._provision(request)
        except ProvisioningError:
            raise
        except Exception as exc:
            logger.exception("Error creating group")
            raise InternalError(details=str(exc)) from exc

    def build_participants(self, client_identity: str) -> ParticipantSet:
        """Return the participant set for a client."""
        return ParticipantSet(
            owner=self.owner,
            client=client_identity,
            fixed_roster=self.designers,
        )

    async def _provision(self, request: GroupProvisionRequest) -> ProvisionResult:
        contact = (request.client_contact or "").strip()
        label = (request.group_label or "").strip()
        if not contact:
            raise MissingInput("phone")
        if not label:
            raise MissingInput("groupName")
        if not self.session.is_ready:
            raise BackendNotReady(message=PAIRING_HINT)

        try:
            client_identity = self.formatter.to_identity(contact)
        except ValueError as exc:
            raise InvalidInput("phone", details=str(exc)) from exc

        participants = self.build_participants(client_identity)
        if len(participants) < 2:  # noqa: PLR2004
            raise InsufficientParticipants()

        logger.info(
            "Creating group %s",
            label,
            extra={"participants": participants.members},
        )
        group = await self._create_group(label, participants.members)
        if not group.group_id:
            raise GroupCreationFailed(details="Backend returned no group id")
        logger.info("Group created successfully: %s", label)

        self.runner.submit(
            self._follow_up(group, label, participants),
            name=f"follow-up:{group.group_id}",
        )
        return ProvisionResult(
            group_id=group.group_id,
            group_label=label,
            participants=participants,
            message=SUCCESS_MESSAGE,
        )

    async def _create_group(self, label: str, members: list[str]) -> GroupHandle:
        options = dict(self.create_options) or None
        try:
            return await self.backend.create_group(label, members, options=options)
        except BackendUnavailable as exc:
            raise BackendNotReady(message=PAIRING_HINT, details=str(exc)) from exc
        except CreateRejected as exc:
            # Never repeat an identical create.
            if not (options and self.create_fallback_enabled):
                raise GroupCreationFailed(details=str(exc)) from exc
            logger.warning(
                "Group creation rejected, retrying without options: %s", exc
            )
        except BackendError as exc:
            raise GroupCreationFailed(details=str(exc)) from exc
        try:
            return await self.backend.create_group(label, members)
        except BackendError as exc:
            raise GroupCreationFailed(details=str(exc)) from exc

    async def _follow_up(
        self, group: GroupHandle, label: str, participants: ParticipantSet
    ) -> None:
        await self.sleep(self.settling_seconds)

        client_targets = [
            identity
            for identity in [participants.client]
            if identity != participants.owner
        ]
        await self.promotion.promote_with_retry(group, client_targets)
        await self.promotion.promote_with_retry(group, participants.designers)
        await self._log_roster(group)
        await self._send_welcome(group, label)
        await self._persist(group, label, participants)

    async def _log_roster(self, group: GroupHandle) -> None:
        try:
            roster = await self.backend.get_group_info(group)
        except Exception:
            logger.exception(
                "Failed to fetch group roster", extra={"group_id": group.group_id}
            )
            return
        missing = [entry.identity for entry in roster if not entry.is_admin]
        if missing:
            logger.warning(
                "Participants without admin rights: %s",
                ", ".join(missing),
                extra={"group_id": group.group_id},
            )

    async def _send_welcome(self, group: GroupHandle, label: str) -> None:
        try:
            text = self.welcome_template.format(group_name=label)
            await self.backend.send_message(group, text)
        except Exception:
            logger.exception(
                "Failed to send welcome message", extra={"group_id": group.group_id}
            )

    async def _persist(
        self, group: GroupHandle, label: str, participants: ParticipantSet
    ) -> None:
        record = GroupRecord(
            group_id=group.group_id or "",
            group_label=label,
            participants=participants.members,
            created_at=datetime.now(tz=UTC),
            client_contact=participants.client,
        )
        try:
            await self.records.append(record)
        except Exception:
            logger.exception(
                "Failed to save group record", extra={"group_id": group.group_id}
            )
