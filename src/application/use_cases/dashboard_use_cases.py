"""
Dashboard Use Cases - Application Layer

Read-only aggregates over predictions, anomalies and models of a tenant.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from dependency_injector.wiring import Provide, inject

from src.domain.entities.context import RequestContext
from src.domain.entities.errors import AssetNotFoundError, AssetRegistryError
from src.domain.entities.model import ModelStatus
from src.domain.entities.prediction import (
    OPEN_STATUSES,
    Prediction,
    PredictionStatus,
)
from src.domain.entities.risk import RiskLevel
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.domain.gateways.metric_store_gateway import IMetricStoreGateway
from src.domain.repositories.anomaly_repository import IAnomalyRepository
from src.domain.repositories.model_repository import IModelRepository
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.shared import get_logger

from ..dtos.anomaly_dto import AnomalyResponseDTO
from ..dtos.dashboard_dto import (
    AssetHealthScoreDTO,
    DashboardSummaryDTO,
    RiskCountsDTO,
)
from ..dtos.prediction_dto import PredictionResponseDTO

logger = get_logger(__name__)

RECENT_PREDICTIONS = 10
MONITORING_WINDOW = timedelta(hours=24)

_CONVERTED_STATUSES = {
    PredictionStatus.WORK_ORDER_CREATED,
    PredictionStatus.RESOLVED,
}


class GetDashboardSummaryUseCase:
    """Use case for the predictive maintenance dashboard."""

    @inject
    def __init__(
        self,
        prediction_repository: IPredictionRepository = Provide[
            "prediction_repository"
        ],
        anomaly_repository: IAnomalyRepository = Provide["anomaly_repository"],
        model_repository: IModelRepository = Provide["model_repository"],
        metric_store: IMetricStoreGateway = Provide["metric_store_gateway"],
        asset_registry: IAssetRegistryGateway = Provide["asset_registry_gateway"],
    ):
        self.prediction_repository = prediction_repository
        self.anomaly_repository = anomaly_repository
        self.model_repository = model_repository
        self.metric_store = metric_store
        self.asset_registry = asset_registry

    async def _model_accuracy(self, context: RequestContext) -> Optional[float]:
        models = await self.model_repository.find_all(
            context.tenant_id, limit=0, status=ModelStatus.ACTIVE
        )
        accuracies = [m.accuracy for m in models if m.accuracy is not None]
        if not accuracies:
            return None
        return round(sum(accuracies) / len(accuracies), 2)

    async def _asset_name(self, context: RequestContext, asset_id: str) -> str:
        try:
            asset = await self.asset_registry.resolve(context, asset_id)
        except (AssetNotFoundError, AssetRegistryError) as e:
            logger.warning(
                "dashboard.asset_name_unresolved", asset_id=asset_id, error=e.message
            )
            return asset_id
        return asset.name or asset_id

    async def _health_scores(
        self, context: RequestContext, open_predictions: List[Prediction]
    ) -> List[AssetHealthScoreDTO]:
        by_asset: Dict[str, List[Prediction]] = {}
        for prediction in open_predictions:
            by_asset.setdefault(prediction.asset_id, []).append(prediction)

        scores = []
        for asset_id, predictions in by_asset.items():
            worst = max(p.probability for p in predictions)
            scores.append(
                AssetHealthScoreDTO(
                    asset_id=asset_id,
                    asset_name=await self._asset_name(context, asset_id),
                    health_score=round(100.0 - worst, 2),
                    risk_level=RiskLevel.highest(p.risk_level for p in predictions),
                )
            )
        scores.sort(key=lambda score: (score.health_score, score.asset_id))
        return scores

    async def execute(self, context: RequestContext) -> DashboardSummaryDTO:
        """
        Build the dashboard summary of a tenant.

        Raises:
            MetricStoreError: If the monitored assets cannot be listed
        """
        now = datetime.now(timezone.utc)
        tenant_id = context.tenant_id

        open_predictions = await self.prediction_repository.find_many(
            tenant_id, statuses=OPEN_STATUSES, limit=0
        )
        risk_counts = Counter(p.risk_level.value for p in open_predictions)
        by_type = Counter(p.prediction_type.value for p in open_predictions)

        anomalies_last_24h = await self.anomaly_repository.count(
            tenant_id, since=now - MONITORING_WINDOW
        )
        failures_prevented = await self.prediction_repository.count(
            tenant_id, statuses={PredictionStatus.RESOLVED}, was_accurate=True
        )
        potential_savings = await self.prediction_repository.total_potential_savings(
            tenant_id, _CONVERTED_STATUSES
        )
        monitored = await self.metric_store.list_monitored_assets(
            context, now - MONITORING_WINDOW
        )
        recent = await self.prediction_repository.find_many(
            tenant_id, limit=RECENT_PREDICTIONS
        )

        return DashboardSummaryDTO(
            active_predictions=len(open_predictions),
            risk_counts=RiskCountsDTO(**risk_counts),
            anomalies_last_24h=anomalies_last_24h,
            failures_prevented=failures_prevented,
            potential_savings=round(potential_savings, 2),
            model_accuracy=await self._model_accuracy(context),
            assets_monitored=len(set(monitored)),
            predictions_by_type=dict(by_type),
            recent_predictions=[PredictionResponseDTO.from_domain(p) for p in recent],
            asset_health_scores=await self._health_scores(context, open_predictions),
        )


class GetAnomaliesUseCase:
    """Use case for listing recorded anomalies, newest first."""

    @inject
    def __init__(
        self,
        anomaly_repository: IAnomalyRepository = Provide["anomaly_repository"],
    ):
        self.anomaly_repository = anomaly_repository

    async def execute(
        self,
        context: RequestContext,
        limit: int = 50,
        asset_id: Optional[str] = None,
        severity: Optional[RiskLevel] = None,
    ) -> List[AnomalyResponseDTO]:
        anomalies = await self.anomaly_repository.find_recent(
            context.tenant_id, limit=limit, asset_id=asset_id, severity=severity
        )
        return [AnomalyResponseDTO.from_domain(a) for a in anomalies]
