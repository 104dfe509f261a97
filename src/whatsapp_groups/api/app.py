"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from whatsapp_groups.api.admin import router as admin_router
from whatsapp_groups.api.models import (
    CreateGroupRequest,
    CreateGroupResponse,
    GatewayEvent,
    GroupRecordModel,
)
from whatsapp_groups.app_logging import configure_logging
from whatsapp_groups.containers import AppContainer
from whatsapp_groups.domain.connection import BackendEvent
from whatsapp_groups.domain.groups import GroupProvisionRequest
from whatsapp_groups.services.provisioning import ProvisioningError
from whatsapp_groups.services.records import RecordStoreError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.backend_client.connect()
        except Exception:
            logger.exception(
                "Failed to initialize WhatsApp client; "
                "server will keep running without WhatsApp functionality"
            )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Health check including WhatsApp readiness."""
        state_container: AppContainer = request.app.state.container
        return {
            "status": "OK",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "whatsappReady": state_container.session.is_ready,
        }

    @app.get("/api/whatsapp-status")
    async def whatsapp_status(request: Request) -> dict[str, object]:
        """Expose readiness and the pairing code for the status page."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.session.snapshot()
        return {
            "ready": snapshot.ready,
            "state": snapshot.state.value,
            "qr": snapshot.pairing_challenge,
            "info": (
                {"identity": snapshot.backend_identity}
                if snapshot.backend_identity
                else None
            ),
        }

    @app.post("/create-group", response_model=CreateGroupResponse)
    async def create_group(
        body: CreateGroupRequest, request: Request
    ) -> CreateGroupResponse | JSONResponse:
        """Provision a WhatsApp group for a client."""
        state_container: AppContainer = request.app.state.container
        provision_request = GroupProvisionRequest(
            client_contact=body.phone,
            group_label=body.group_name,
        )
        try:
            result = await state_container.provisioning_service.provision_group(
                provision_request
            )
        except ProvisioningError as exc:
            return JSONResponse(
                status_code=exc.status_code,
                content=_error_payload(state_container, exc),
            )
        return CreateGroupResponse.from_result(result)

    @app.get("/api/groups", response_model=None)
    async def list_groups(request: Request) -> dict[str, object] | JSONResponse:
        """Return provisioned groups in creation order."""
        state_container: AppContainer = request.app.state.container
        try:
            records = await state_container.record_service.list_records()
        except RecordStoreError as exc:
            logger.exception("Failed to load group records")
            content = {"error": "Failed to load groups"}
            if state_container.settings.environment == "local":
                content["details"] = str(exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
            )
        return {"groups": [GroupRecordModel.from_record(r) for r in records]}

    @app.post("/gateway/events")
    async def gateway_events(
        event: GatewayEvent,
        request: Request,
        x_gateway_token: str | None = Header(default=None),
    ) -> dict[str, str]:
        """Receive lifecycle events from the WhatsApp gateway."""
        state_container: AppContainer = request.app.state.container
        expected = state_container.settings.gateway_events_token
        if expected and x_gateway_token != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        snapshot = state_container.session.handle_event(
            BackendEvent(
                type=event.type,
                challenge=event.qr,
                identity=event.identity,
                reason=event.reason,
            )
        )
        return {"state": snapshot.state.value}

    return app


def _error_payload(
    state_container: AppContainer, exc: ProvisioningError
) -> dict[str, str]:
    """Return the error body, hiding details outside local environments."""
    payload = exc.to_payload()
    is_local = state_container.settings.environment == "local"
    if not is_local and exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        payload.pop("details", None)
    return payload
