"""
Model Use Cases - Application Layer

This module defines the model registry and the use cases for model
operations. It orchestrates the flow of data to and from the entities
and implements the business rules of the application.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from dependency_injector.wiring import Provide, inject

from src.domain.entities.context import RequestContext
from src.domain.entities.errors import (
    ActiveModelNotFoundError,
    ModelNotFoundError,
    ModelValidationError,
)
from src.domain.entities.model import (
    DEFAULT_PARAMETERS,
    Model,
    ModelParameters,
    ModelStatus,
    ModelType,
    TrainingStats,
)
from src.domain.entities.prediction import PredictionStatus
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.domain.gateways.metric_store_gateway import IMetricStoreGateway
from src.domain.repositories.model_repository import IModelRepository
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.domain.services import (
    adaptive_z_threshold,
    describe,
    validate_model_configuration,
)
from src.shared import get_logger

from ..dtos.model_dto import ModelCreateDTO, ModelResponseDTO

logger = get_logger(__name__)


class ModelRegistry:
    """Resolves the models governing each asset type and records training."""

    @inject
    def __init__(
        self,
        model_repository: IModelRepository = Provide["model_repository"],
    ):
        self.model_repository = model_repository

    async def get_active_model(
        self, context: RequestContext, asset_type: str, model_type: ModelType
    ) -> Model:
        """
        The most recently updated active model for the pair.

        Raises:
            ActiveModelNotFoundError: If no model is active for the pair
        """
        model = await self.model_repository.find_active(
            context.tenant_id, asset_type, model_type
        )
        if model is None:
            raise ActiveModelNotFoundError(asset_type, model_type.value)
        return model

    async def get_parameters(
        self, context: RequestContext, asset_type: str, model_type: ModelType
    ) -> ModelParameters:
        model = await self.get_active_model(context, asset_type, model_type)
        return model.parameters

    async def record_training_run(
        self,
        context: RequestContext,
        model_id: UUID,
        accuracy: Optional[float],
        data_points: int,
        trained_at: datetime,
        training_stats: Optional[TrainingStats] = None,
        parameters: Optional[ModelParameters] = None,
    ) -> Model:
        """
        Store the outcome of a training run.

        Raises:
            ModelNotFoundError: If the tenant has no such model
            ValueError: If accuracy or data points are out of range
        """
        model = await self.model_repository.find_by_id(context.tenant_id, model_id)
        if model is None:
            raise ModelNotFoundError(str(model_id))

        model.record_training_run(accuracy, data_points, trained_at)
        if training_stats is not None:
            model.training_stats = training_stats
        if parameters is not None:
            model.parameters = parameters
        updated = await self.model_repository.update(model)

        logger.info(
            "model.training.recorded",
            model_id=str(model_id),
            tenant_id=context.tenant_id,
            accuracy=accuracy,
            data_points=data_points,
            status=updated.status.value,
        )
        return updated


class GetModelsUseCase:
    """Use case for retrieving models."""

    @inject
    def __init__(
        self,
        model_repository: IModelRepository = Provide["model_repository"],
    ):
        self.model_repository = model_repository

    async def execute(
        self,
        context: RequestContext,
        skip: int = 0,
        limit: int = 100,
        asset_type: Optional[str] = None,
        model_type: Optional[ModelType] = None,
        status: Optional[ModelStatus] = None,
    ) -> List[ModelResponseDTO]:
        """
        Retrieve the tenant's models with pagination and filtering.

        Args:
            context: Tenant and actor of the request
            skip: Number of records to skip
            limit: Maximum number of records to return
            asset_type: Filter by asset type
            model_type: Filter by model type
            status: Filter by model status

        Returns:
            List of model response DTOs matching the criteria
        """
        models = await self.model_repository.find_all(
            context.tenant_id,
            skip=skip,
            limit=limit,
            asset_type=asset_type,
            model_type=model_type,
            status=status,
        )
        return [ModelResponseDTO.from_domain(model) for model in models]


class CreateModelUseCase:
    """Use case for creating a new model."""

    @inject
    def __init__(
        self,
        model_repository: IModelRepository = Provide["model_repository"],
    ):
        self.model_repository = model_repository

    async def execute(
        self, context: RequestContext, model_dto: ModelCreateDTO
    ) -> ModelResponseDTO:
        """
        Create a new active model from the type defaults and overrides.

        Raises:
            ModelValidationError: If the parameters are invalid
            ModelOperationError: If the model cannot be stored
        """
        overrides = model_dto.parameters.overrides() if model_dto.parameters else None
        parameters = DEFAULT_PARAMETERS[model_dto.model_type].merged_with(overrides)

        model = Model(
            tenant_id=context.tenant_id,
            name=model_dto.name.strip(),
            description=model_dto.description,
            asset_type=model_dto.asset_type.strip(),
            model_type=model_dto.model_type,
            sensor_type=model_dto.sensor_type,
            status=ModelStatus.ACTIVE,
            parameters=parameters,
        )
        validate_model_configuration(model)

        created_model = await self.model_repository.create(model)
        logger.info(
            "model.created",
            model_id=str(created_model.id),
            tenant_id=context.tenant_id,
            asset_type=created_model.asset_type,
            model_type=created_model.model_type.value,
            actor_id=context.actor_id,
        )
        return ModelResponseDTO.from_domain(created_model)


class TrainModelUseCase:
    """Use case for refreshing a model from recent telemetry."""

    @inject
    def __init__(
        self,
        model_repository: IModelRepository = Provide["model_repository"],
        prediction_repository: IPredictionRepository = Provide[
            "prediction_repository"
        ],
        metric_store: IMetricStoreGateway = Provide["metric_store_gateway"],
        asset_registry: IAssetRegistryGateway = Provide["asset_registry_gateway"],
        model_registry: ModelRegistry = Provide["model_registry"],
    ):
        self.model_repository = model_repository
        self.prediction_repository = prediction_repository
        self.metric_store = metric_store
        self.asset_registry = asset_registry
        self.model_registry = model_registry

    async def _collect_values(
        self, context: RequestContext, model: Model, since: datetime
    ) -> List[float]:
        values: List[float] = []
        assets = await self.asset_registry.list_by_type(context, model.asset_type)
        for asset in assets:
            if model.sensor_type is not None:
                sensor_types = [model.sensor_type]
            else:
                sensor_types = await self.metric_store.list_sensor_types(
                    context, asset.asset_id
                )
            for sensor_type in sensor_types:
                readings = await self.metric_store.fetch_readings(
                    context, asset.asset_id, sensor_type, since
                )
                values.extend(reading.value for reading in readings)
        return values

    async def _accuracy(
        self, context: RequestContext, model: Model
    ) -> tuple[Optional[float], int, int]:
        resolved = {PredictionStatus.RESOLVED}
        correct = await self.prediction_repository.count(
            context.tenant_id, statuses=resolved, model_id=model.id, was_accurate=True
        )
        wrong = await self.prediction_repository.count(
            context.tenant_id, statuses=resolved, model_id=model.id, was_accurate=False
        )
        total = await self.prediction_repository.count(
            context.tenant_id, model_id=model.id
        )
        judged = correct + wrong
        accuracy = round(correct / judged * 100.0, 2) if judged else None
        return accuracy, total, correct

    async def execute(
        self,
        context: RequestContext,
        model_id: UUID,
        historical_days: int = 90,
    ) -> ModelResponseDTO:
        """
        Train a model on the telemetry of every asset of its type.

        Raises:
            ModelNotFoundError: If the tenant has no such model
            ModelValidationError: If there is not enough data to train on
        """
        model = await self.model_repository.find_by_id(context.tenant_id, model_id)
        if model is None:
            raise ModelNotFoundError(str(model_id))

        now = datetime.now(timezone.utc)
        values = await self._collect_values(
            context, model, now - timedelta(days=historical_days)
        )
        required = model.parameters.min_data_points
        if len(values) < required:
            raise ModelValidationError(
                "Insufficient data for training.",
                details={
                    "errors": [
                        f"At least {required} readings are required, "
                        f"{len(values)} available."
                    ],
                    "required": required,
                    "available": len(values),
                },
            )

        model.mark_training()
        await self.model_repository.update(model)
        logger.info(
            "model.training.started",
            model_id=str(model_id),
            tenant_id=context.tenant_id,
            data_points=len(values),
            historical_days=historical_days,
        )

        try:
            stats = describe(values)
            parameters = model.parameters
            if model.model_type == ModelType.ANOMALY_DETECTION:
                parameters = replace(
                    parameters, z_score_threshold=adaptive_z_threshold(stats)
                )
            accuracy, total, correct = await self._accuracy(context, model)

            model = await self.model_repository.find_by_id(context.tenant_id, model_id)
            if model is None:
                raise ModelNotFoundError(str(model_id))
            model.total_predictions = total
            model.correct_predictions = correct
            await self.model_repository.update(model)

            trained = await self.model_registry.record_training_run(
                context,
                model_id,
                accuracy=accuracy,
                data_points=len(values),
                trained_at=now,
                training_stats=stats,
                parameters=parameters,
            )
        except Exception as e:
            logger.error(
                "model.training.failed",
                model_id=str(model_id),
                tenant_id=context.tenant_id,
                error=str(e),
                exc_info=e,
            )
            model.mark_failed()
            await self.model_repository.update(model)
            raise

        return ModelResponseDTO.from_domain(trained)
