"""Celery task that fans the daily scoring run out per asset."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

from src.infrastructure.services.celery_config import SCORING_QUEUE, celery_app
from src.infrastructure.services.tasks.base import CallbackTask, logger
from src.infrastructure.settings import get_settings


async def _collect_targets(model_repo, metric_store, since) -> Tuple[List, int]:
    from src.domain.entities.context import RequestContext
    from src.domain.entities.errors import MetricStoreError

    targets: List[Tuple[str, str]] = []
    failed_tenants = 0
    for tenant_id in await model_repo.list_active_tenants():
        context = RequestContext.for_scheduler(tenant_id)
        try:
            asset_ids = await metric_store.list_monitored_assets(context, since)
        except MetricStoreError as exc:
            logger.error(
                "scoring.scheduler.tenant_failed",
                tenant_id=tenant_id,
                error=exc.message,
            )
            failed_tenants += 1
            continue
        targets.extend((tenant_id, asset_id) for asset_id in sorted(set(asset_ids)))
    return targets, failed_tenants


@celery_app.task(bind=True, base=CallbackTask, name="schedule_scoring_runs")
def schedule_scoring_runs(self) -> Dict[str, Any]:
    """Enqueue one scoring run per monitored asset of every active tenant."""

    from src.infrastructure.database.mongo_database import MongoDatabase
    from src.infrastructure.gateways import MetricStoreGateway
    from src.infrastructure.repositories import ModelRepository

    settings = get_settings()
    database = MongoDatabase(
        mongo_uri=settings.database.mongo_uri,
        db_name=settings.database.database_name,
    )
    try:
        model_repo = ModelRepository(database)
        metric_store = MetricStoreGateway(
            settings.collaborators.metric_store_url,
            timeout=settings.collaborators.timeout,
        )
        now = datetime.now(timezone.utc)
        since = now - timedelta(hours=settings.scoring.monitored_window_hours)
        targets, failed_tenants = asyncio.run(
            _collect_targets(model_repo, metric_store, since)
        )
    finally:
        database.close()

    dispatched = 0
    failed = 0
    for tenant_id, asset_id in targets:
        try:
            celery_app.send_task(
                "execute_scoring_run",
                kwargs={"tenant_id": tenant_id, "asset_id": asset_id},
                queue=SCORING_QUEUE,
            )
            dispatched += 1
        except Exception as exc:
            logger.error(
                "scoring.scheduler.dispatch_failed",
                tenant_id=tenant_id,
                asset_id=asset_id,
                error=str(exc),
            )
            failed += 1

    logger.info(
        "scoring.scheduler.completed",
        dispatched=dispatched,
        failed=failed,
        failed_tenants=failed_tenants,
    )
    return {
        "dispatched": dispatched,
        "failed": failed,
        "failed_tenants": failed_tenants,
        "timestamp": now.isoformat(),
    }
