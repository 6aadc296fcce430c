from __future__ import annotations

from typing import Any, List, Optional
from uuid import uuid4

import pytest
from fastapi import HTTPException

from src.application.dtos.model_dto import ModelCreateDTO
from src.application.dtos.scoring_dto import ReadingsArrivedDTO
from src.application.dtos.prediction_dto import (
    DismissPredictionDTO,
    GenerateWorkOrderDTO,
    ResolvePredictionDTO,
)
from src.domain.entities.errors import (
    AssetNotFoundError,
    ConcurrentUpdateError,
    InvalidTransitionError,
    MetricStoreError,
    ModelNotFoundError,
    ModelValidationError,
    PredictionNotFoundError,
    WorkOrderGatewayError,
)
from src.domain.entities.prediction import DismissalReason, PredictionStatus
from src.domain.entities.risk import RiskLevel
from src.presentation.controllers import predictive_controller as controller


class _UseCase:
    """Records every call and answers with a canned result or error."""

    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[tuple] = []

    async def execute(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_dashboard_returns_use_case_result(context) -> None:
    use_case = _UseCase(result="summary")

    result = await controller.get_dashboard(context=context, use_case=use_case)

    assert result == "summary"
    assert use_case.calls == [((context,), {})]


@pytest.mark.asyncio
async def test_dashboard_maps_collaborator_failure_to_bad_gateway(context) -> None:
    use_case = _UseCase(error=MetricStoreError("Metric store request failed"))

    with pytest.raises(HTTPException) as exc_info:
        await controller.get_dashboard(context=context, use_case=use_case)

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_anomalies_forward_filters(context) -> None:
    use_case = _UseCase(result=[])

    await controller.get_anomalies(
        limit=10,
        asset_id="pump-17",
        severity=RiskLevel.CRITICAL,
        context=context,
        use_case=use_case,
    )

    assert use_case.calls[0][1] == {
        "limit": 10,
        "asset_id": "pump-17",
        "severity": RiskLevel.CRITICAL,
    }


@pytest.mark.asyncio
async def test_predictions_forward_status_filter(context) -> None:
    use_case = _UseCase(result=[])

    await controller.get_predictions(
        asset_id="pump-17",
        prediction_status=PredictionStatus.NEW,
        prediction_type=None,
        risk_level=None,
        limit=5,
        context=context,
        use_case=use_case,
    )

    args, kwargs = use_case.calls[0]
    assert args == (context, "pump-17")
    assert kwargs["status"] is PredictionStatus.NEW
    assert kwargs["limit"] == 5


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (AssetNotFoundError("ghost"), 404),
        (ConcurrentUpdateError("gave up"), 409),
        (MetricStoreError("unreachable"), 502),
        (RuntimeError("boom"), 500),
    ],
)
async def test_analyze_maps_errors(context, error, status_code) -> None:
    with pytest.raises(HTTPException) as exc_info:
        await controller.analyze_asset(
            asset_id="pump-17", context=context, use_case=_UseCase(error=error)
        )

    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_readings_arrived_forwards_notice(context) -> None:
    notice = ReadingsArrivedDTO(asset_id="pump-17")
    use_case = _UseCase(result="queued")

    result = await controller.readings_arrived(
        notice=notice, context=context, use_case=use_case
    )

    assert result == "queued"
    assert use_case.calls == [((context, notice), {})]


@pytest.mark.asyncio
async def test_readings_arrived_broker_failure_is_unavailable(context) -> None:
    use_case = _UseCase(error=ConnectionError("broker down"))

    with pytest.raises(HTTPException) as exc_info:
        await controller.readings_arrived(
            notice=ReadingsArrivedDTO(asset_id="pump-17"),
            context=context,
            use_case=use_case,
        )

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_create_model_validation_errors_are_listed(context) -> None:
    error = ModelValidationError(
        "Invalid model configuration",
        {"errors": ["Window size must be at least 5 readings."]},
    )
    dto = ModelCreateDTO(
        name="Pumps", asset_type="pump", model_type="anomaly_detection"
    )

    with pytest.raises(HTTPException) as exc_info:
        await controller.create_model(
            model_dto=dto, context=context, use_case=_UseCase(error=error)
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["errors"] == [
        "Window size must be at least 5 readings."
    ]


@pytest.mark.asyncio
async def test_train_model_defaults_history_window(context) -> None:
    use_case = _UseCase(result="trained")
    model_id = uuid4()

    result = await controller.train_model(
        model_id=model_id, request=None, context=context, use_case=use_case
    )

    assert result == "trained"
    assert use_case.calls[0][0] == (context, model_id, 90)


@pytest.mark.asyncio
async def test_train_unknown_model_is_not_found(context) -> None:
    model_id = uuid4()

    with pytest.raises(HTTPException) as exc_info:
        await controller.train_model(
            model_id=model_id,
            request=None,
            context=context,
            use_case=_UseCase(error=ModelNotFoundError(str(model_id))),
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_acknowledge_invalid_transition_is_conflict(context) -> None:
    prediction_id = uuid4()
    error = InvalidTransitionError(str(prediction_id), "dismissed", "acknowledged")

    with pytest.raises(HTTPException) as exc_info:
        await controller.acknowledge_prediction(
            prediction_id=prediction_id, context=context, use_case=_UseCase(error=error)
        )

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail["current_status"] == "dismissed"


@pytest.mark.asyncio
async def test_acknowledge_unknown_prediction_is_not_found(context) -> None:
    prediction_id = uuid4()

    with pytest.raises(HTTPException) as exc_info:
        await controller.acknowledge_prediction(
            prediction_id=prediction_id,
            context=context,
            use_case=_UseCase(error=PredictionNotFoundError(str(prediction_id))),
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_dismiss_without_body_uses_default_reason(context) -> None:
    use_case = _UseCase(result="dismissed")
    prediction_id = uuid4()

    await controller.dismiss_prediction(
        prediction_id=prediction_id, request=None, context=context, use_case=use_case
    )

    (_, forwarded_id, body), _ = use_case.calls[0]
    assert forwarded_id == prediction_id
    assert isinstance(body, DismissPredictionDTO)
    assert body.reason is DismissalReason.DISMISSED


@pytest.mark.asyncio
async def test_generate_work_order_gateway_failure_is_bad_gateway(context) -> None:
    request = GenerateWorkOrderDTO(prediction_id=uuid4())

    with pytest.raises(HTTPException) as exc_info:
        await controller.generate_work_order(
            request=request,
            context=context,
            use_case=_UseCase(error=WorkOrderGatewayError("HTTP error 503")),
        )

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_resolve_forwards_body(context) -> None:
    use_case = _UseCase(result="resolved")
    body = ResolvePredictionDTO(was_accurate=True, resolution_notes="Bearing replaced")

    result = await controller.resolve_prediction(
        prediction_id=uuid4(), request=body, context=context, use_case=use_case
    )

    assert result == "resolved"
    assert use_case.calls[0][0][2] is body
