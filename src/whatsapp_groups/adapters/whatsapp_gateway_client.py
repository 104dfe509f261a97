"""WhatsApp gateway client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from whatsapp_groups.domain.groups import GroupHandle, RosterEntry

_CHAT_SUFFIX = "@c.us"
_UNAVAILABLE_STATUSES = {409, 503}


class BackendError(Exception):
    """Base error for messaging backend failures."""


class BackendUnavailable(BackendError):
    """The backend session is not connected or cannot be reached."""


class CreateRejected(BackendError):
    """The backend refused to create a group."""


class PromotionRejected(BackendError):
    """The backend refused to promote participants."""


class BackendClient(Protocol):
    """Interface for the messaging backend."""

    async def connect(self) -> None:
        """Start the backend session; lifecycle events arrive asynchronously."""

    async def create_group(
        self,
        label: str,
        participants: list[str],
        options: dict[str, object] | None = None,
    ) -> GroupHandle:
        """Create a group with the given participants."""

    async def promote_participants(
        self, group: GroupHandle, identities: list[str]
    ) -> None:
        """Grant admin privileges to group participants."""

    async def send_message(self, group: GroupHandle, text: str) -> None:
        """Send a text message to a group."""

    async def get_group_info(self, group: GroupHandle) -> list[RosterEntry]:
        """Return the group roster with admin flags."""


def to_chat_id(identity: str) -> str:
    """Convert a bare identity into a WhatsApp chat id."""
    if "@" in identity:
        return identity
    return f"{identity}{_CHAT_SUFFIX}"


def from_chat_id(chat_id: str) -> str:
    """Strip the WhatsApp server suffix from a chat id."""
    return chat_id.split("@", maxsplit=1)[0]


@dataclass
class HttpxWhatsAppGatewayClient:
    """Backend client that talks to a whatsapp-web.js HTTP gateway."""

    base_url: str
    session: str
    http_client: httpx.AsyncClient
    api_key: str | None = None

    @classmethod
    def create(
        cls, base_url: str, session: str, api_key: str | None = None
    ) -> "HttpxWhatsAppGatewayClient":
        """Create a gateway client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            session=session,
            http_client=httpx.AsyncClient(),
            api_key=api_key,
        )

    async def connect(self) -> None:
        """Ask the gateway to start (or resume) the WhatsApp session."""
        await self._post(f"/sessions/{self.session}/start", {}, BackendUnavailable)

    async def create_group(
        self,
        label: str,
        participants: list[str],
        options: dict[str, object] | None = None,
    ) -> GroupHandle:
        """Create a group through the gateway."""
        payload: dict[str, object] = {
            "name": label,
            "participants": [to_chat_id(identity) for identity in participants],
        }
        if options:
            payload["options"] = options
        data = await self._post(
            f"/sessions/{self.session}/groups", payload, CreateRejected
        )
        title = data.get("title")
        return GroupHandle(
            group_id=_extract_group_id(data),
            title=title if isinstance(title, str) else None,
        )

    async def promote_participants(
        self, group: GroupHandle, identities: list[str]
    ) -> None:
        """Promote participants to group admins."""
        await self._post(
            f"/sessions/{self.session}/groups/{group.group_id}/admin/promote",
            {"participants": [to_chat_id(identity) for identity in identities]},
            PromotionRejected,
        )

    async def send_message(self, group: GroupHandle, text: str) -> None:
        """Send a text message to the group chat."""
        await self._post(
            f"/sessions/{self.session}/messages/text",
            {"chatId": group.group_id, "text": text},
            BackendError,
        )

    async def get_group_info(self, group: GroupHandle) -> list[RosterEntry]:
        """Fetch the group participants with their admin flags."""
        url = f"{self.base_url}/sessions/{self.session}/groups/{group.group_id}"
        try:
            response = await self.http_client.get(
                url, headers=self._headers(), timeout=15
            )
        except httpx.HTTPError as exc:
            raise BackendUnavailable(str(exc)) from exc
        _raise_for_status(response, BackendError)
        data = response.json()
        return [
            RosterEntry(
                identity=from_chat_id(_serialized(row.get("id"))),
                is_admin=bool(row.get("isAdmin")),
                is_super_admin=bool(row.get("isSuperAdmin")),
            )
            for row in data.get("participants", [])
        ]

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _post(
        self,
        path: str,
        payload: dict[str, object],
        rejection: type[BackendError],
    ) -> dict[str, object]:
        try:
            response = await self.http_client.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers(),
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise BackendUnavailable(str(exc)) from exc
        _raise_for_status(response, rejection)
        if not response.content:
            return {}
        data = response.json()
        return data if isinstance(data, dict) else {}

    def _headers(self) -> dict[str, str]:
        if self.api_key:
            return {"X-Api-Key": self.api_key}
        return {}


def _raise_for_status(response: httpx.Response, rejection: type[BackendError]) -> None:
    """Map a failed response onto the backend error taxonomy.

    Only client errors count as a refusal. Other server errors leave the
    outcome unknown and raise the plain base error.
    """
    if response.is_success:
        return
    detail = f"{response.status_code}: {response.text[:200]}"
    if response.status_code in _UNAVAILABLE_STATUSES:
        raise BackendUnavailable(detail)
    if response.is_client_error:
        raise rejection(detail)
    raise BackendError(detail)


def _serialized(value: object) -> str:
    if isinstance(value, dict):
        return str(value.get("_serialized") or "")
    return str(value or "")


def _extract_group_id(data: dict[str, object]) -> str | None:
    """Read the group id from the shapes the gateway may return."""
    for key in ("gid", "id"):
        group_id = _serialized(data.get(key))
        if group_id:
            return group_id
    return None
