from __future__ import annotations

from typing import cast

import pytest

from src.application.dtos.prediction_dto import DismissPredictionDTO
from src.application.use_cases.model_use_cases import ModelRegistry
from src.application.use_cases.prediction_lifecycle import PredictionLifecycleManager
from src.application.use_cases.prediction_use_cases import DismissPredictionUseCase
from src.application.use_cases.scoring_use_case import AssetScoringUseCase
from src.domain.entities.model import ModelType
from src.domain.entities.prediction import PredictionType
from src.domain.entities.telemetry import SensorType
from src.infrastructure.database.mongo_database import MongoDatabase
from src.infrastructure.repositories.anomaly_repository import AnomalyRepository
from src.infrastructure.repositories.model_repository import ModelRepository
from src.infrastructure.repositories.prediction_repository import (
    PredictionRepository,
)
from tests.conftest import FakeMongoDatabase, make_model


@pytest.fixture()
def database() -> MongoDatabase:
    return cast(MongoDatabase, FakeMongoDatabase())


@pytest.fixture()
def prediction_repository(database) -> PredictionRepository:
    return PredictionRepository(database)


@pytest.fixture()
def lifecycle(prediction_repository) -> PredictionLifecycleManager:
    return PredictionLifecycleManager(prediction_repository=prediction_repository)


@pytest.fixture()
async def scoring(
    database, prediction_repository, lifecycle, metric_store, asset_registry
) -> AssetScoringUseCase:
    model_repository = ModelRepository(database)
    await model_repository.create(
        make_model(ModelType.FAILURE_PREDICTION, sensor_type=SensorType.TEMPERATURE)
    )
    await model_repository.create(make_model(ModelType.REMAINING_LIFE))
    metric_store.add_stream(
        "pump-17",
        SensorType.TEMPERATURE,
        [50.0 + index * 0.5 for index in range(60)],
    )
    return AssetScoringUseCase(
        metric_store=metric_store,
        asset_registry=asset_registry,
        model_registry=ModelRegistry(model_repository=model_repository),
        lifecycle=lifecycle,
        anomaly_repository=AnomalyRepository(database),
        prediction_repository=prediction_repository,
    )


async def test_rising_temperature_produces_failure_degradation_and_life(
    scoring, context
):
    report = await scoring.execute(context, "pump-17")

    by_type = {p.prediction_type: p for p in report.predictions}
    assert set(by_type) == {
        PredictionType.FAILURE,
        PredictionType.DEGRADATION,
        PredictionType.REMAINING_LIFE,
    }
    assert [a.prediction_type for a in report.abstentions] == [PredictionType.ANOMALY]
    assert report.anomalies == []
    assert by_type[PredictionType.REMAINING_LIFE].remaining_life_days is not None
    for prediction in report.predictions:
        assert 0 <= prediction.probability <= 100
        assert 0 <= prediction.confidence <= 100


async def test_rescoring_keeps_one_open_prediction_per_type(
    scoring, context, prediction_repository
):
    first = await scoring.execute(context, "pump-17")
    second = await scoring.execute(context, "pump-17")

    assert {p.id for p in first.predictions} == {p.id for p in second.predictions}
    for prediction_type in (
        PredictionType.FAILURE,
        PredictionType.DEGRADATION,
        PredictionType.REMAINING_LIFE,
    ):
        assert (
            await prediction_repository.count(
                context.tenant_id,
                asset_id="pump-17",
                prediction_type=prediction_type,
            )
            == 1
        )


async def test_dismissed_prediction_frees_the_key_for_the_next_run(
    scoring, context, lifecycle
):
    first = await scoring.execute(context, "pump-17")
    degradation = next(
        p for p in first.predictions if p.prediction_type == PredictionType.DEGRADATION
    )

    dismissed = await DismissPredictionUseCase(lifecycle=lifecycle).execute(
        context, degradation.id, DismissPredictionDTO(reason="false_positive")
    )
    assert dismissed.status.value == "false_positive"

    second = await scoring.execute(context, "pump-17")
    renewed = next(
        p for p in second.predictions if p.prediction_type == PredictionType.DEGRADATION
    )
    assert renewed.id != degradation.id
    assert renewed.status.value == "new"
