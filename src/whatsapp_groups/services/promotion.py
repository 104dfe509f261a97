"""Bounded retry of participant promotion."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from whatsapp_groups.adapters.whatsapp_gateway_client import BackendClient
from whatsapp_groups.domain.groups import GroupHandle, PromotionOutcome

logger = logging.getLogger(__name__)


@dataclass
class PromotionRetryCoordinator:
    """Promote participants, retrying with a fixed backoff.

    Promotion is best-effort: failures are reported as values and never
    raised, so a refused promotion cannot abort the surrounding workflow.
    """

    backend: BackendClient
    max_attempts: int = 3
    backoff_seconds: float = 3.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    async def promote_with_retry(self, group: GroupHandle, targets: list[str]) -> bool:
        """Return true once the backend accepts the promotion."""
        outcome = await self.promote(group, targets)
        return outcome.succeeded

    async def promote(self, group: GroupHandle, targets: list[str]) -> PromotionOutcome:
        """Attempt promotion up to ``max_attempts`` times."""
        if not targets:
            return PromotionOutcome(targets=[], succeeded=True, attempts_used=0)
        remaining = max(self.max_attempts, 1)
        attempts = 0
        while remaining > 0:
            attempts += 1
            try:
                await self.backend.promote_participants(group, targets)
            except Exception as exc:  # noqa: BLE001
                remaining -= 1
                logger.warning(
                    "Promotion attempt %s failed: %s",
                    attempts,
                    exc,
                    extra={"group_id": group.group_id, "targets": targets},
                )
                if remaining > 0:
                    await self.sleep(self.backoff_seconds)
                continue
            logger.info(
                "Promoted participants to admin",
                extra={"group_id": group.group_id, "attempts": attempts},
            )
            return PromotionOutcome(
                targets=list(targets), succeeded=True, attempts_used=attempts
            )
        logger.error(
            "Giving up promotion after %s attempts",
            attempts,
            extra={"group_id": group.group_id, "targets": targets},
        )
        return PromotionOutcome(
            targets=list(targets), succeeded=False, attempts_used=attempts
        )
