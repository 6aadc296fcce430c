from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from src.domain.entities.errors import WorkOrderGatewayError
from src.domain.entities.prediction import Prediction
from src.infrastructure.gateways.work_order_gateway import WorkOrderGateway
from tests.conftest import make_score


def _prediction() -> Prediction:
    return Prediction.from_score(
        "tenant-a",
        make_score(
            recommended_action="Inspect bearings",
            predicted_date=datetime(2024, 7, 1, tzinfo=timezone.utc),
            estimated_cost=3200.0,
        ),
    )


@pytest.mark.asyncio
async def test_create_from_prediction_posts_payload(
    http_requests, context, sample_asset
) -> None:
    requests = http_requests(lambda request: httpx.Response(201, json={"id": 981}))
    gateway = WorkOrderGateway("http://work-orders/")
    prediction = _prediction()

    reference = await gateway.create_from_prediction(
        context, prediction, "high", asset=sample_asset
    )

    assert reference == "981"
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/work-orders/from-prediction"
    assert request.headers["X-Actor-Id"] == "user-1"
    assert request.headers["Idempotency-Key"] == f"prediction-{prediction.id}"
    body = json.loads(request.content)
    assert body["predictionId"] == str(prediction.id)
    assert body["title"] == "Predictive maintenance: Cooling pump 17"
    assert body["priority"] == "high"
    assert body["riskLevel"] == "high"
    assert body["estimatedCost"] == 3200.0
    assert body["dueDate"] == "2024-07-01T00:00:00+00:00"
    assert body["description"].endswith("Recommended action: Inspect bearings")


@pytest.mark.asyncio
async def test_title_falls_back_to_asset_id(http_requests, context) -> None:
    requests = http_requests(lambda request: httpx.Response(200, json={"id": "WO-1"}))
    gateway = WorkOrderGateway("http://work-orders")

    await gateway.create_from_prediction(context, _prediction(), "medium")

    body = json.loads(requests[0].content)
    assert body["title"] == "Predictive maintenance: pump-17"


@pytest.mark.asyncio
async def test_rejected_request_raises(http_requests, context) -> None:
    http_requests(lambda request: httpx.Response(422, json={"detail": "bad"}))
    gateway = WorkOrderGateway("http://work-orders")

    with pytest.raises(WorkOrderGatewayError) as exc_info:
        await gateway.create_from_prediction(context, _prediction(), "low")

    assert exc_info.value.details == {"status_code": 422}


@pytest.mark.asyncio
async def test_response_without_id_raises(http_requests, context) -> None:
    http_requests(lambda request: httpx.Response(200, json={"status": "queued"}))
    gateway = WorkOrderGateway("http://work-orders")

    with pytest.raises(WorkOrderGatewayError, match="no work order id"):
        await gateway.create_from_prediction(context, _prediction(), "low")


@pytest.mark.asyncio
async def test_unreachable_system_raises(http_requests, context) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    http_requests(refuse)
    gateway = WorkOrderGateway("http://work-orders")

    with pytest.raises(WorkOrderGatewayError, match="request failed"):
        await gateway.create_from_prediction(context, _prediction(), "low")
