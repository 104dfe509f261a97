"""Tests for container wiring."""

import asyncio

from whatsapp_groups.adapters.json_group_record_repository import (
    JsonGroupRecordRepository,
)
from whatsapp_groups.config import Settings, parse_designers
from whatsapp_groups.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    service = container.provisioning_service
    assert service.owner == "201012345678"
    assert service.designers == ("201098765432", "201011111111")
    assert service.promotion.max_attempts == 3
    assert isinstance(container.record_service.repository, JsonGroupRecordRepository)
    assert container.session.is_ready is False
    asyncio.run(container.close_resources())


def test_parse_designers_skips_blanks() -> None:
    assert parse_designers(" a@c.us, ,b@c.us,") == ["a@c.us", "b@c.us"]
    assert parse_designers(None) == []
