"""Celery task that runs the scoring pipeline for one asset."""

from __future__ import annotations

import asyncio
from typing import Any, Dict

from src.infrastructure.services.celery_config import celery_app
from src.infrastructure.services.tasks.base import CallbackTask, logger
from src.infrastructure.settings import InfrastructureSettings, get_settings


def build_scoring_use_case(settings: InfrastructureSettings, database):
    """Assemble the scoring pipeline from worker settings."""
    from src.application.use_cases.model_use_cases import ModelRegistry
    from src.application.use_cases.prediction_lifecycle import (
        PredictionLifecycleManager,
    )
    from src.application.use_cases.scoring_use_case import AssetScoringUseCase
    from src.infrastructure.gateways import AssetRegistryGateway, MetricStoreGateway
    from src.infrastructure.repositories import (
        AnomalyRepository,
        ModelRepository,
        PredictionRepository,
    )

    collaborators = settings.collaborators
    prediction_repo = PredictionRepository(database)
    return AssetScoringUseCase(
        metric_store=MetricStoreGateway(
            collaborators.metric_store_url, timeout=collaborators.timeout
        ),
        asset_registry=AssetRegistryGateway(
            collaborators.asset_registry_url, timeout=collaborators.timeout
        ),
        model_registry=ModelRegistry(model_repository=ModelRepository(database)),
        lifecycle=PredictionLifecycleManager(
            prediction_repo, max_attempts=settings.scoring.lock_retries
        ),
        anomaly_repository=AnomalyRepository(database),
        prediction_repository=prediction_repo,
        lookback_days=settings.scoring.lookback_days,
        work_order_window_days=settings.scoring.failure_horizon_days,
        scan_window_hours=settings.scoring.monitored_window_hours,
    )


@celery_app.task(bind=True, base=CallbackTask, name="execute_scoring_run")
def execute_scoring_run(self, *, tenant_id: str, asset_id: str) -> Dict[str, Any]:
    """Score one asset for the daily scheduler or a reading-arrival notice."""

    from src.domain.entities.context import RequestContext
    from src.infrastructure.database.mongo_database import MongoDatabase
    from src.shared import bind_request_context, clear_request_context

    settings = get_settings()
    database = MongoDatabase(
        mongo_uri=settings.database.mongo_uri,
        db_name=settings.database.database_name,
    )
    try:
        use_case = build_scoring_use_case(settings, database)
        context = RequestContext.for_scheduler(tenant_id)
        bind_request_context(context.tenant_id, context.actor_id)
        report = asyncio.run(use_case.execute(context, asset_id))
    except Exception as exc:
        logger.error(
            "scoring.asset.failed",
            tenant_id=tenant_id,
            asset_id=asset_id,
            error=str(exc),
            exc_info=exc,
        )
        raise
    finally:
        database.close()
        clear_request_context()

    return {
        "tenant_id": tenant_id,
        "asset_id": asset_id,
        "outcome": report.outcome.value,
        "predictions": len(report.predictions),
        "anomalies": len(report.anomalies),
        "abstentions": len(report.abstentions),
        "issues": report.issues,
    }
