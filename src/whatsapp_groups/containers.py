"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from whatsapp_groups.adapters.json_group_record_repository import (
    JsonGroupRecordRepository,
)
from whatsapp_groups.adapters.supabase_group_record_repository import (
    SupabaseGroupRecordRepository,
)
from whatsapp_groups.adapters.whatsapp_gateway_client import (
    BackendClient,
    HttpxWhatsAppGatewayClient,
)
from whatsapp_groups.config import Settings, parse_designers
from whatsapp_groups.services.background import BackgroundTaskRunner
from whatsapp_groups.services.connection import SessionStateMachine
from whatsapp_groups.services.phone import PhoneNumberFormatter
from whatsapp_groups.services.promotion import PromotionRetryCoordinator
from whatsapp_groups.services.provisioning import ProvisioningService
from whatsapp_groups.services.records import GroupRecordRepository, GroupRecordService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    backend_client: BackendClient
    session: SessionStateMachine
    record_service: GroupRecordService
    provisioning_service: ProvisioningService
    background_runner: BackgroundTaskRunner
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    designers = parse_designers(resolved_settings.designers)
    logger.info(
        "Configuration loaded: ADMIN_NUMBER %s, DESIGNERS %s",
        "set" if resolved_settings.admin_number else "not set",
        "set" if designers else "not set",
    )
    backend_client = HttpxWhatsAppGatewayClient.create(
        base_url=resolved_settings.whatsapp_gateway_url,
        session=resolved_settings.whatsapp_session,
        api_key=resolved_settings.whatsapp_gateway_api_key,
    )
    record_service = GroupRecordService(_build_record_repository(resolved_settings))
    session = SessionStateMachine()
    runner = BackgroundTaskRunner()
    provisioning_service = build_provisioning_service(
        resolved_settings,
        backend=backend_client,
        session=session,
        records=record_service,
        runner=runner,
    )

    async def close_resources() -> None:
        await runner.drain()
        await backend_client.close()

    return AppContainer(
        settings=resolved_settings,
        backend_client=backend_client,
        session=session,
        record_service=record_service,
        provisioning_service=provisioning_service,
        background_runner=runner,
        close_resources=close_resources,
    )


def build_provisioning_service(
    settings: Settings,
    backend: BackendClient,
    session: SessionStateMachine,
    records: GroupRecordService,
    runner: BackgroundTaskRunner,
) -> ProvisioningService:
    """Create the provisioning workflow from settings."""
    formatter = PhoneNumberFormatter(settings.default_country_code)
    return ProvisioningService(
        backend=backend,
        session=session,
        formatter=formatter,
        promotion=PromotionRetryCoordinator(
            backend=backend,
            max_attempts=settings.promotion_max_attempts,
            backoff_seconds=settings.promotion_backoff_seconds,
        ),
        records=records,
        runner=runner,
        owner=formatter.to_identity(settings.admin_number),
        designers=tuple(
            formatter.to_identity(entry)
            for entry in parse_designers(settings.designers)
        ),
        welcome_template=settings.welcome_template,
        settling_seconds=settings.settling_seconds,
        create_options=dict(settings.group_create_options),
        create_fallback_enabled=settings.create_fallback_enabled,
    )


def _build_record_repository(settings: Settings) -> GroupRecordRepository:
    if settings.uses_supabase:
        return SupabaseGroupRecordRepository(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    return JsonGroupRecordRepository(Path(settings.database_path))
