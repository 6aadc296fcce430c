"""
Asset Scoring Use Case - Application Layer

Runs the scoring pipeline for a single asset: every detector, trend and
remaining-life result is computed first, and only then are scores handed to
the prediction lifecycle and anomalies recorded. A configuration problem in
any governing model skips the asset without touching storage.

Every reading in the scan window is judged, and readings that already have an
anomaly are skipped, so overlapping or repeated runs record each anomaly once.
Anomalies are written after the predictions: a run that fails while ingesting
scores leaves its anomalies unrecorded, and the next run finds them again.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from dependency_injector.wiring import Provide, inject

from src.domain.entities.anomaly import Anomaly, reading_instant
from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext
from src.domain.entities.errors import (
    DuplicateAnomalyError,
    InsufficientDataError,
    ModelConfigurationError,
    ModelNotFoundError,
)
from src.domain.entities.model import Model, ModelType
from src.domain.entities.prediction import (
    PredictionScore,
    PredictionStatus,
    PredictionType,
)
from src.domain.entities.telemetry import Reading, SensorType
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.domain.gateways.metric_store_gateway import IMetricStoreGateway
from src.domain.repositories.anomaly_repository import IAnomalyRepository
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.domain.services import collect_parameter_errors, estimate, scan, smooth
from src.domain.services.scoring import (
    MAINTENANCE_INTERVAL_DAYS,
    StreamTrend,
    anomaly_score,
    degradation_score,
    driving_trend,
    failure_score,
    most_severe,
    remaining_life_score,
)
from src.domain.services.trend_estimator import exceeds_threshold
from src.shared import get_logger

from ..dtos.anomaly_dto import AnomalyResponseDTO
from ..dtos.prediction_dto import PredictionResponseDTO
from ..dtos.scoring_dto import AbstentionDTO, ScoringOutcome, ScoringReportDTO
from .model_use_cases import ModelRegistry
from .prediction_lifecycle import PredictionLifecycleManager

logger = get_logger(__name__)

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_SCAN_WINDOW_HOURS = 24

# Prediction types each model type governs.
GOVERNED_TYPES: Dict[ModelType, Tuple[PredictionType, ...]] = {
    ModelType.ANOMALY_DETECTION: (PredictionType.ANOMALY,),
    ModelType.FAILURE_PREDICTION: (
        PredictionType.FAILURE,
        PredictionType.DEGRADATION,
    ),
    ModelType.REMAINING_LIFE: (PredictionType.REMAINING_LIFE,),
}

_WORK_ORDER_STATUSES = {
    PredictionStatus.WORK_ORDER_CREATED,
    PredictionStatus.RESOLVED,
}

Streams = Dict[SensorType, List[Reading]]


class _ScoringPlan:
    """Everything computed for an asset before any write happens."""

    def __init__(self) -> None:
        self.anomalies: List[Anomaly] = []
        self.scores: List[PredictionScore] = []
        self.abstentions: List[AbstentionDTO] = []

    def abstain(self, prediction_type: PredictionType, reason: str) -> None:
        self.abstentions.append(
            AbstentionDTO(prediction_type=prediction_type, reason=reason)
        )


class AssetScoringUseCase:
    """Use case for scoring one asset end to end."""

    @inject
    def __init__(
        self,
        metric_store: IMetricStoreGateway = Provide["metric_store_gateway"],
        asset_registry: IAssetRegistryGateway = Provide["asset_registry_gateway"],
        model_registry: ModelRegistry = Provide["model_registry"],
        lifecycle: PredictionLifecycleManager = Provide["prediction_lifecycle"],
        anomaly_repository: IAnomalyRepository = Provide["anomaly_repository"],
        prediction_repository: IPredictionRepository = Provide[
            "prediction_repository"
        ],
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        work_order_window_days: int = MAINTENANCE_INTERVAL_DAYS,
        scan_window_hours: int = DEFAULT_SCAN_WINDOW_HOURS,
    ):
        self.metric_store = metric_store
        self.asset_registry = asset_registry
        self.model_registry = model_registry
        self.lifecycle = lifecycle
        self.anomaly_repository = anomaly_repository
        self.prediction_repository = prediction_repository
        self.lookback_days = lookback_days
        self.work_order_window_days = work_order_window_days
        self.scan_window_hours = scan_window_hours

    async def _load_models(
        self, context: RequestContext, asset: AssetInfo, plan: _ScoringPlan
    ) -> Dict[ModelType, Model]:
        models: Dict[ModelType, Model] = {}
        for model_type, governed in GOVERNED_TYPES.items():
            try:
                models[model_type] = await self.model_registry.get_active_model(
                    context, asset.asset_type, model_type
                )
            except ModelNotFoundError as e:
                for prediction_type in governed:
                    plan.abstain(prediction_type, e.message)
        return models

    async def _load_streams(
        self,
        context: RequestContext,
        asset_id: str,
        models: Dict[ModelType, Model],
        since: datetime,
    ) -> Streams:
        wanted = [
            model
            for model_type, model in models.items()
            if model_type != ModelType.REMAINING_LIFE
        ]
        if not wanted:
            return {}

        if all(model.sensor_type is not None for model in wanted):
            sensor_types = {model.sensor_type for model in wanted}
        else:
            sensor_types = set(
                await self.metric_store.list_sensor_types(context, asset_id)
            )

        streams: Streams = {}
        for sensor_type in sorted(sensor_types, key=lambda s: s.value):
            streams[sensor_type] = await self.metric_store.fetch_readings(
                context, asset_id, sensor_type, since
            )
        return streams

    @staticmethod
    def _streams_for(model: Model, streams: Streams) -> Streams:
        if model.sensor_type is None:
            return streams
        return {
            sensor_type: readings
            for sensor_type, readings in streams.items()
            if sensor_type == model.sensor_type
        }

    @staticmethod
    def _check_configuration(models: Dict[ModelType, Model]) -> None:
        for model_type, model in models.items():
            errors = collect_parameter_errors(model.parameters, model_type)
            if errors:
                raise ModelConfigurationError(
                    f"Model {model.id} cannot drive the {model_type.value} estimator",
                    {"model_id": str(model.id), "errors": errors},
                )

    async def _plan_anomalies(
        self,
        context: RequestContext,
        asset: AssetInfo,
        model: Model,
        streams: Streams,
        plan: _ScoringPlan,
        now: datetime,
    ) -> None:
        params = model.parameters
        since = now - timedelta(hours=self.scan_window_hours)
        for sensor_type, readings in self._streams_for(model, streams).items():
            try:
                found = scan(
                    readings, params.window_size, params.iqr_multiplier, since=since
                )
            except InsufficientDataError as e:
                logger.debug(
                    "scoring.anomaly.insufficient_data",
                    asset_id=asset.asset_id,
                    sensor_type=sensor_type.value,
                    required=e.required,
                    available=e.available,
                )
                continue
            if not found:
                continue
            recorded = await self.anomaly_repository.recorded_timestamps(
                context.tenant_id, asset.asset_id, sensor_type, since
            )
            fresh = [
                anomaly
                for anomaly in found
                if reading_instant(anomaly.timestamp) not in recorded
            ]
            if len(fresh) < len(found):
                logger.debug(
                    "scoring.anomaly.already_recorded",
                    asset_id=asset.asset_id,
                    sensor_type=sensor_type.value,
                    skipped=len(found) - len(fresh),
                )
            plan.anomalies.extend(fresh)

        worst = most_severe(plan.anomalies)
        if worst is not None:
            plan.scores.append(
                anomaly_score(worst, params.z_score_threshold, model_id=model.id)
            )
        elif not any(self._streams_for(model, streams).values()):
            plan.abstain(PredictionType.ANOMALY, "No readings in the lookback window")

    async def _plan_failure(
        self,
        context: RequestContext,
        asset: AssetInfo,
        model: Model,
        streams: Streams,
        plan: _ScoringPlan,
        now: datetime,
    ) -> Optional[StreamTrend]:
        params = model.parameters
        model_streams = self._streams_for(model, streams)
        trends: List[StreamTrend] = []
        for sensor_type, readings in model_streams.items():
            state = smooth(
                (reading.value for reading in readings), params.alpha, params.beta
            )
            if state is not None:
                trends.append(StreamTrend(sensor_type, state, len(readings)))

        readings_count = sum(len(readings) for readings in model_streams.values())
        if readings_count == 0:
            for prediction_type in GOVERNED_TYPES[ModelType.FAILURE_PREDICTION]:
                plan.abstain(prediction_type, "No readings in the lookback window")
            return None

        threshold = params.degradation_threshold
        degrading = [
            trend for trend in trends if exceeds_threshold(trend.state, threshold)
        ]
        worst_trend = driving_trend(degrading, threshold)
        if worst_trend is not None:
            plan.scores.append(
                degradation_score(
                    asset.asset_id, worst_trend, threshold, model_id=model.id
                )
            )

        since = now - timedelta(days=self.lookback_days)
        recorded = await self.anomaly_repository.count(
            context.tenant_id, asset_id=asset.asset_id, since=since
        )
        work_orders = await self.prediction_repository.count(
            context.tenant_id,
            asset_id=asset.asset_id,
            statuses=_WORK_ORDER_STATUSES,
            since=now - timedelta(days=self.work_order_window_days),
        )
        trend = driving_trend(trends, threshold)
        plan.scores.append(
            failure_score(
                asset,
                readings_count=readings_count,
                anomaly_count=recorded + len(plan.anomalies),
                recent_work_orders=work_orders,
                trend=trend,
                degradation_threshold=threshold,
                now=now,
                model_id=model.id,
            )
        )
        return trend

    @staticmethod
    def _plan_remaining_life(
        asset: AssetInfo,
        model: Model,
        trend: Optional[StreamTrend],
        plan: _ScoringPlan,
        now: datetime,
    ) -> None:
        age_hours = asset.age_in_service_hours(now)
        if age_hours is None:
            plan.abstain(
                PredictionType.REMAINING_LIFE,
                "Asset has neither operating hours nor an in-service date",
            )
            return
        params = model.parameters
        life = estimate(params.weibull_shape, params.weibull_scale_hours, age_hours)
        plan.scores.append(
            remaining_life_score(asset, life, trend, now, model_id=model.id)
        )

    async def execute(
        self, context: RequestContext, asset_id: str
    ) -> ScoringReportDTO:
        """
        Score an asset and record the results.

        Predictions are ingested before the new anomalies are recorded.

        Args:
            context: Tenant and actor of the run
            asset_id: Asset to score

        Returns:
            Report listing the predictions, anomalies and abstentions

        Raises:
            AssetNotFoundError: If the asset registry does not know the asset
            GatewayError: If a collaborator cannot be reached
        """
        started_at = datetime.now(timezone.utc)
        logger.info(
            "scoring.asset.started", tenant_id=context.tenant_id, asset_id=asset_id
        )

        asset = await self.asset_registry.resolve(context, asset_id)
        plan = _ScoringPlan()
        models = await self._load_models(context, asset, plan)
        streams = await self._load_streams(
            context,
            asset_id,
            models,
            started_at - timedelta(days=self.lookback_days),
        )

        try:
            self._check_configuration(models)
            trend: Optional[StreamTrend] = None
            if ModelType.ANOMALY_DETECTION in models:
                await self._plan_anomalies(
                    context,
                    asset,
                    models[ModelType.ANOMALY_DETECTION],
                    streams,
                    plan,
                    started_at,
                )
            if ModelType.FAILURE_PREDICTION in models:
                trend = await self._plan_failure(
                    context,
                    asset,
                    models[ModelType.FAILURE_PREDICTION],
                    streams,
                    plan,
                    started_at,
                )
            if ModelType.REMAINING_LIFE in models:
                self._plan_remaining_life(
                    asset, models[ModelType.REMAINING_LIFE], trend, plan, started_at
                )
        except ModelConfigurationError as e:
            issues = [e.message, *e.details.get("errors", [])]
            logger.warning(
                "scoring.configuration_issue",
                tenant_id=context.tenant_id,
                asset_id=asset_id,
                issues=issues,
            )
            return ScoringReportDTO(
                asset_id=asset_id,
                outcome=ScoringOutcome.SKIPPED,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
                streams_analyzed=len(streams),
                abstentions=plan.abstentions,
                issues=issues,
            )

        predictions = []
        for score in plan.scores:
            predictions.append(await self.lifecycle.ingest_score(context, score))

        recorded: List[Anomaly] = []
        for anomaly in plan.anomalies:
            try:
                recorded.append(
                    await self.anomaly_repository.add(
                        anomaly.for_tenant(context.tenant_id)
                    )
                )
            except DuplicateAnomalyError as e:
                # A concurrent run for the same asset recorded it first.
                logger.info(
                    "scoring.anomaly.duplicate",
                    tenant_id=context.tenant_id,
                    asset_id=asset_id,
                    timestamp=e.details["timestamp"],
                )

        logger.info(
            "scoring.asset.completed",
            tenant_id=context.tenant_id,
            asset_id=asset_id,
            streams=len(streams),
            anomalies=len(recorded),
            predictions=len(predictions),
            abstentions=len(plan.abstentions),
        )
        return ScoringReportDTO(
            asset_id=asset_id,
            outcome=ScoringOutcome.COMPLETED,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            streams_analyzed=len(streams),
            predictions=[PredictionResponseDTO.from_domain(p) for p in predictions],
            anomalies=[AnomalyResponseDTO.from_domain(a) for a in recorded],
            abstentions=plan.abstentions,
        )
