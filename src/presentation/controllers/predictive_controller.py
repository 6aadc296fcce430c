"""
Predictive Router - Presentation Layer

This module defines the FastAPI router for the predictive maintenance
endpoints: dashboard, anomalies, predictions, scoring runs, the model
registry and the prediction lifecycle.
"""

from typing import List, Optional

import structlog
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import UUID4

from src.application.dtos.anomaly_dto import AnomalyResponseDTO
from src.application.dtos.dashboard_dto import DashboardSummaryDTO
from src.application.dtos.model_dto import (
    ModelCreateDTO,
    ModelResponseDTO,
    TrainModelRequestDTO,
)
from src.application.dtos.prediction_dto import (
    DismissPredictionDTO,
    GenerateWorkOrderDTO,
    PredictionResponseDTO,
    ResolvePredictionDTO,
    WorkOrderResponseDTO,
)
from src.application.dtos.scoring_dto import (
    ReadingsArrivedDTO,
    ScoringDispatchDTO,
    ScoringReportDTO,
)
from src.application.use_cases.dashboard_use_cases import (
    GetAnomaliesUseCase,
    GetDashboardSummaryUseCase,
)
from src.application.use_cases.model_use_cases import (
    CreateModelUseCase,
    GetModelsUseCase,
    TrainModelUseCase,
)
from src.application.use_cases.prediction_use_cases import (
    AcknowledgePredictionUseCase,
    DismissPredictionUseCase,
    GenerateWorkOrderUseCase,
    GetPredictionsUseCase,
    ResolvePredictionUseCase,
)
from src.application.use_cases.scoring_dispatch_use_case import (
    DispatchScoringRunUseCase,
)
from src.application.use_cases.scoring_use_case import AssetScoringUseCase
from src.domain.entities.context import RequestContext
from src.domain.entities.errors import (
    AssetNotFoundError,
    ConcurrentUpdateError,
    GatewayError,
    InvalidTransitionError,
    ModelNotFoundError,
    ModelValidationError,
    PredictionNotFoundError,
)
from src.domain.entities.model import ModelStatus, ModelType
from src.domain.entities.prediction import PredictionStatus, PredictionType
from src.domain.entities.risk import RiskLevel

from ..dependencies import get_request_context

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/predictive", tags=["Predictive Maintenance"])


def _bad_gateway(e: GatewayError) -> HTTPException:
    logger.error("predictive.collaborator_failed", error=e.message, details=e.details)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)


def _conflict(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"message": e.message, "current_status": e.current_status},
    )


def _internal_error(event: str, e: Exception, **context) -> HTTPException:
    logger.error(event, error=str(e), exc_info=e, **context)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.get("/dashboard", response_model=DashboardSummaryDTO)
@inject
async def get_dashboard(
    context: RequestContext = Depends(get_request_context),
    use_case: GetDashboardSummaryUseCase = Depends(
        Provide["get_dashboard_summary_use_case"]
    ),
) -> DashboardSummaryDTO:
    """Aggregated predictive maintenance state of the tenant."""
    try:
        return await use_case.execute(context)
    except GatewayError as e:
        raise _bad_gateway(e)
    except Exception as e:
        raise _internal_error("predictive.dashboard.failed", e)


@router.get("/anomalies", response_model=List[AnomalyResponseDTO])
@inject
async def get_anomalies(
    limit: int = Query(50, ge=1, le=500, description="Maximum anomalies to return"),
    asset_id: Optional[str] = Query(None, description="Filter by asset"),
    severity: Optional[RiskLevel] = Query(None, description="Filter by severity"),
    context: RequestContext = Depends(get_request_context),
    use_case: GetAnomaliesUseCase = Depends(Provide["get_anomalies_use_case"]),
) -> List[AnomalyResponseDTO]:
    """Recorded anomalies, newest first."""
    try:
        return await use_case.execute(
            context, limit=limit, asset_id=asset_id, severity=severity
        )
    except Exception as e:
        raise _internal_error("predictive.anomalies.failed", e)


@router.get("/predictions/{asset_id}", response_model=List[PredictionResponseDTO])
@inject
async def get_predictions(
    asset_id: str,
    prediction_status: Optional[PredictionStatus] = Query(None, alias="status"),
    prediction_type: Optional[PredictionType] = Query(None),
    risk_level: Optional[RiskLevel] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    context: RequestContext = Depends(get_request_context),
    use_case: GetPredictionsUseCase = Depends(Provide["get_predictions_use_case"]),
) -> List[PredictionResponseDTO]:
    """Predictions of an asset, newest first."""
    try:
        return await use_case.execute(
            context,
            asset_id,
            status=prediction_status,
            prediction_type=prediction_type,
            risk_level=risk_level,
            limit=limit,
        )
    except Exception as e:
        raise _internal_error("predictive.predictions.failed", e, asset_id=asset_id)


@router.post("/analyze/{asset_id}", response_model=ScoringReportDTO)
@inject
async def analyze_asset(
    asset_id: str,
    context: RequestContext = Depends(get_request_context),
    use_case: AssetScoringUseCase = Depends(Provide["asset_scoring_use_case"]),
) -> ScoringReportDTO:
    """
    Run the scoring pipeline for an asset now.

    A configuration problem in a governing model skips the asset; the report
    then carries outcome ``skipped`` and the issues found.
    """
    try:
        return await use_case.execute(context, asset_id)
    except AssetNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except GatewayError as e:
        raise _bad_gateway(e)
    except Exception as e:
        raise _internal_error("scoring.asset.failed", e, asset_id=asset_id)


@router.post(
    "/readings-arrived",
    response_model=ScoringDispatchDTO,
    status_code=status.HTTP_202_ACCEPTED,
)
@inject
async def readings_arrived(
    notice: ReadingsArrivedDTO,
    context: RequestContext = Depends(get_request_context),
    use_case: DispatchScoringRunUseCase = Depends(
        Provide["dispatch_scoring_run_use_case"]
    ),
) -> ScoringDispatchDTO:
    """Queue a scoring run for an asset that just reported new readings."""
    try:
        return await use_case.execute(context, notice)
    except Exception as e:
        logger.error(
            "scoring.dispatch.failed",
            asset_id=notice.asset_id,
            error=str(e),
            exc_info=e,
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scoring queue unavailable",
        )


@router.get("/models", response_model=List[ModelResponseDTO])
@inject
async def get_models(
    skip: int = Query(0, ge=0, description="Number of models to skip"),
    limit: int = Query(
        100, ge=1, le=1000, description="Maximum number of models to return"
    ),
    asset_type: Optional[str] = Query(None, description="Filter by asset type"),
    model_type: Optional[ModelType] = Query(None, description="Filter by model type"),
    model_status: Optional[ModelStatus] = Query(
        None, alias="status", description="Filter by model status"
    ),
    context: RequestContext = Depends(get_request_context),
    use_case: GetModelsUseCase = Depends(Provide["get_models_use_case"]),
) -> List[ModelResponseDTO]:
    """Models registered by the tenant."""
    try:
        return await use_case.execute(
            context,
            skip=skip,
            limit=limit,
            asset_type=asset_type,
            model_type=model_type,
            status=model_status,
        )
    except Exception as e:
        raise _internal_error("predictive.models.list_failed", e)


@router.post(
    "/models",
    response_model=ModelResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def create_model(
    model_dto: ModelCreateDTO,
    context: RequestContext = Depends(get_request_context),
    use_case: CreateModelUseCase = Depends(Provide["create_model_use_case"]),
) -> ModelResponseDTO:
    """Register a model; omitted parameters take the model type defaults."""
    try:
        return await use_case.execute(context, model_dto)
    except ModelValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.details.get("errors", [])},
        )
    except Exception as e:
        raise _internal_error("predictive.models.create_failed", e)


@router.post("/models/{model_id}/train", response_model=ModelResponseDTO)
@inject
async def train_model(
    model_id: UUID4,
    request: Optional[TrainModelRequestDTO] = Body(None),
    context: RequestContext = Depends(get_request_context),
    use_case: TrainModelUseCase = Depends(Provide["train_model_use_case"]),
) -> ModelResponseDTO:
    """Refresh a model from the recent telemetry of its asset type."""
    historical_days = (request or TrainModelRequestDTO()).historical_days
    try:
        return await use_case.execute(context, model_id, historical_days)
    except ModelNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ModelValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.details.get("errors", [])},
        )
    except GatewayError as e:
        raise _bad_gateway(e)
    except Exception as e:
        raise _internal_error(
            "predictive.models.train_failed", e, model_id=str(model_id)
        )


@router.post("/acknowledge/{prediction_id}", response_model=PredictionResponseDTO)
@inject
async def acknowledge_prediction(
    prediction_id: UUID4,
    context: RequestContext = Depends(get_request_context),
    use_case: AcknowledgePredictionUseCase = Depends(
        Provide["acknowledge_prediction_use_case"]
    ),
) -> PredictionResponseDTO:
    """Mark a new prediction as reviewed."""
    try:
        return await use_case.execute(context, prediction_id)
    except PredictionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidTransitionError as e:
        raise _conflict(e)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except Exception as e:
        raise _internal_error(
            "predictive.acknowledge.failed", e, prediction_id=str(prediction_id)
        )


@router.post("/dismiss/{prediction_id}", response_model=PredictionResponseDTO)
@inject
async def dismiss_prediction(
    prediction_id: UUID4,
    request: Optional[DismissPredictionDTO] = Body(None),
    context: RequestContext = Depends(get_request_context),
    use_case: DismissPredictionUseCase = Depends(
        Provide["dismiss_prediction_use_case"]
    ),
) -> PredictionResponseDTO:
    """Close an open prediction as dismissed or false positive."""
    try:
        return await use_case.execute(
            context, prediction_id, request or DismissPredictionDTO()
        )
    except PredictionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidTransitionError as e:
        raise _conflict(e)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except Exception as e:
        raise _internal_error(
            "predictive.dismiss.failed", e, prediction_id=str(prediction_id)
        )


@router.post("/generate-work-order", response_model=WorkOrderResponseDTO)
@inject
async def generate_work_order(
    request: GenerateWorkOrderDTO,
    context: RequestContext = Depends(get_request_context),
    use_case: GenerateWorkOrderUseCase = Depends(
        Provide["generate_work_order_use_case"]
    ),
) -> WorkOrderResponseDTO:
    """Raise a predictive work order for an open prediction."""
    try:
        return await use_case.execute(context, request.prediction_id)
    except PredictionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidTransitionError as e:
        raise _conflict(e)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except GatewayError as e:
        raise _bad_gateway(e)
    except Exception as e:
        raise _internal_error(
            "predictive.work_order.failed",
            e,
            prediction_id=str(request.prediction_id),
        )


@router.post("/resolve/{prediction_id}", response_model=PredictionResponseDTO)
@inject
async def resolve_prediction(
    prediction_id: UUID4,
    request: Optional[ResolvePredictionDTO] = Body(None),
    context: RequestContext = Depends(get_request_context),
    use_case: ResolvePredictionUseCase = Depends(
        Provide["resolve_prediction_use_case"]
    ),
) -> PredictionResponseDTO:
    """Callback from the work-order system once the work order is completed."""
    try:
        return await use_case.execute(
            context, prediction_id, request or ResolvePredictionDTO()
        )
    except PredictionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidTransitionError as e:
        raise _conflict(e)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except Exception as e:
        raise _internal_error(
            "predictive.resolve.failed", e, prediction_id=str(prediction_id)
        )
