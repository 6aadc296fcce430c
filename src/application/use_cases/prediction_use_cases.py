"""
Prediction Use Cases - Application Layer

Human disposition of predictions (acknowledge, dismiss, resolve), work-order
generation and prediction queries. Every write goes through the
``PredictionLifecycleManager``.
"""

from typing import List, Optional
from uuid import UUID

from dependency_injector.wiring import Provide, inject

from src.domain.entities.context import RequestContext
from src.domain.entities.errors import AssetNotFoundError, AssetRegistryError
from src.domain.entities.prediction import (
    Prediction,
    PredictionStatus,
    PredictionType,
)
from src.domain.entities.risk import RiskLevel
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.domain.gateways.work_order_gateway import IWorkOrderGateway
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.domain.services.recommendations import work_order_priority
from src.shared import get_logger

from ..dtos.prediction_dto import (
    DismissPredictionDTO,
    PredictionResponseDTO,
    ResolvePredictionDTO,
    WorkOrderResponseDTO,
)
from .prediction_lifecycle import PredictionLifecycleManager

logger = get_logger(__name__)


class AcknowledgePredictionUseCase:
    """Use case for acknowledging a new prediction."""

    @inject
    def __init__(
        self,
        lifecycle: PredictionLifecycleManager = Provide["prediction_lifecycle"],
    ):
        self.lifecycle = lifecycle

    async def execute(
        self, context: RequestContext, prediction_id: UUID
    ) -> PredictionResponseDTO:
        prediction = await self.lifecycle.acknowledge(context, prediction_id)
        return PredictionResponseDTO.from_domain(prediction)


class DismissPredictionUseCase:
    """Use case for closing a prediction as dismissed or false positive."""

    @inject
    def __init__(
        self,
        lifecycle: PredictionLifecycleManager = Provide["prediction_lifecycle"],
    ):
        self.lifecycle = lifecycle

    async def execute(
        self,
        context: RequestContext,
        prediction_id: UUID,
        request: DismissPredictionDTO,
    ) -> PredictionResponseDTO:
        prediction = await self.lifecycle.dismiss(
            context, prediction_id, reason=request.reason, notes=request.notes
        )
        return PredictionResponseDTO.from_domain(prediction)


class ResolvePredictionUseCase:
    """Use case for the work-order completion callback."""

    @inject
    def __init__(
        self,
        lifecycle: PredictionLifecycleManager = Provide["prediction_lifecycle"],
    ):
        self.lifecycle = lifecycle

    async def execute(
        self,
        context: RequestContext,
        prediction_id: UUID,
        request: ResolvePredictionDTO,
    ) -> PredictionResponseDTO:
        prediction = await self.lifecycle.resolve(
            context,
            prediction_id,
            resolution_notes=request.resolution_notes,
            was_accurate=request.was_accurate,
            actual_failure_date=request.actual_failure_date,
        )
        return PredictionResponseDTO.from_domain(prediction)


class GenerateWorkOrderUseCase:
    """Use case for converting a prediction into a predictive work order."""

    @inject
    def __init__(
        self,
        lifecycle: PredictionLifecycleManager = Provide["prediction_lifecycle"],
        work_order_gateway: IWorkOrderGateway = Provide["work_order_gateway"],
        asset_registry: IAssetRegistryGateway = Provide["asset_registry_gateway"],
    ):
        self.lifecycle = lifecycle
        self.work_order_gateway = work_order_gateway
        self.asset_registry = asset_registry

    async def execute(
        self, context: RequestContext, prediction_id: UUID
    ) -> WorkOrderResponseDTO:
        """
        Raise a work order for an open prediction and link it.

        Requests for a prediction that already has a work order return the
        existing reference without raising a second one.

        Raises:
            PredictionNotFoundError: If the tenant has no such prediction
            InvalidTransitionError: If the prediction is closed
            WorkOrderGatewayError: If the work-order system fails
        """

        async def issue(prediction: Prediction) -> str:
            try:
                asset = await self.asset_registry.resolve(context, prediction.asset_id)
            except (AssetNotFoundError, AssetRegistryError) as e:
                logger.warning(
                    "work_order.asset_enrichment_failed",
                    prediction_id=str(prediction.id),
                    asset_id=prediction.asset_id,
                    error=e.message,
                )
                asset = None
            return await self.work_order_gateway.create_from_prediction(
                context,
                prediction,
                work_order_priority(prediction.risk_level),
                asset=asset,
            )

        prediction = await self.lifecycle.convert_using(context, prediction_id, issue)
        return WorkOrderResponseDTO(
            work_order_ref=prediction.work_order_ref,
            prediction=PredictionResponseDTO.from_domain(prediction),
        )


class GetPredictionsUseCase:
    """Use case for listing the predictions of an asset."""

    @inject
    def __init__(
        self,
        prediction_repository: IPredictionRepository = Provide[
            "prediction_repository"
        ],
    ):
        self.prediction_repository = prediction_repository

    async def execute(
        self,
        context: RequestContext,
        asset_id: str,
        status: Optional[PredictionStatus] = None,
        prediction_type: Optional[PredictionType] = None,
        risk_level: Optional[RiskLevel] = None,
        limit: int = 100,
    ) -> List[PredictionResponseDTO]:
        predictions = await self.prediction_repository.find_many(
            context.tenant_id,
            asset_id=asset_id,
            statuses={status} if status else None,
            prediction_type=prediction_type,
            risk_level=risk_level,
            limit=limit,
        )
        return [PredictionResponseDTO.from_domain(p) for p in predictions]
