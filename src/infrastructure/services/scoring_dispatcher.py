"""Celery-backed implementation of the scoring dispatcher port."""

from __future__ import annotations

import asyncio
from typing import Optional

from src.domain.ports.scoring_dispatcher import IScoringDispatcher
from src.infrastructure.services.celery_config import SCORING_QUEUE, celery_app
from src.shared import get_logger

logger = get_logger(__name__)


class CeleryScoringDispatcher(IScoringDispatcher):
    """Dispatch scoring runs through Celery."""

    def __init__(self, queue_name: str = SCORING_QUEUE) -> None:
        self._queue_name = queue_name

    async def dispatch_scoring_run(self, *, tenant_id: str, asset_id: str) -> str:
        """Send the scoring task to Celery without blocking the event loop."""

        def _send_task() -> str:
            logger.info(
                "scoring_dispatcher.dispatch",
                tenant_id=tenant_id,
                asset_id=asset_id,
                queue=self._queue_name,
            )
            result = celery_app.send_task(
                "execute_scoring_run",
                kwargs={"tenant_id": tenant_id, "asset_id": asset_id},
                queue=self._queue_name,
            )
            return result.id

        task_id: Optional[str] = await asyncio.to_thread(_send_task)
        return task_id or ""
