"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from whatsapp_groups.adapters.whatsapp_gateway_client import BackendError
from whatsapp_groups.api.models import GroupRecordModel
from whatsapp_groups.domain.groups import GroupHandle
from whatsapp_groups.services.records import RecordStoreError

if TYPE_CHECKING:
    from whatsapp_groups.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/session", dependencies=[Depends(require_admin)])
async def session_detail(request: Request) -> dict[str, object]:
    """Return the session state and pending background work."""
    container: AppContainer = request.app.state.container
    snapshot = container.session.snapshot()
    return {
        "state": snapshot.state.value,
        "ready": snapshot.ready,
        "identity": snapshot.backend_identity,
        "pending_follow_ups": container.background_runner.pending,
    }


@router.get("/groups", dependencies=[Depends(require_admin)])
async def list_groups(request: Request, limit: int = 50) -> dict[str, object]:
    """Return the most recent provisioned groups, newest first."""
    container: AppContainer = request.app.state.container
    if limit <= 0:
        return {"groups": []}
    try:
        records = await container.record_service.list_records()
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return {
        "groups": [GroupRecordModel.from_record(r) for r in reversed(records[-limit:])]
    }


@router.get("/groups/{group_id}/roster", dependencies=[Depends(require_admin)])
async def group_roster(group_id: str, request: Request) -> dict[str, object]:
    """Return the live roster of a group with admin flags."""
    container: AppContainer = request.app.state.container
    try:
        roster = await container.backend_client.get_group_info(
            GroupHandle(group_id=group_id)
        )
    except BackendError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {
        "group_id": group_id,
        "participants": [
            {
                "identity": entry.identity,
                "is_admin": entry.is_admin,
                "is_super_admin": entry.is_super_admin,
            }
            for entry in roster
        ],
    }
