"""Work-order gateway implementation - Infrastructure layer."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext
from src.domain.entities.errors import WorkOrderGatewayError
from src.domain.entities.prediction import Prediction
from src.domain.gateways.work_order_gateway import IWorkOrderGateway
from src.shared import ACTOR_HEADER, TENANT_HEADER, get_logger

logger = get_logger(__name__)

# Lets the work-order system collapse retried requests for one prediction.
IDEMPOTENCY_HEADER = "Idempotency-Key"


class WorkOrderGateway(IWorkOrderGateway):
    """HTTP client for the work-order system."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _build_payload(
        self,
        prediction: Prediction,
        priority: str,
        asset: Optional[AssetInfo],
    ) -> Dict[str, Any]:
        asset_label = asset.name if asset else prediction.asset_id
        description = prediction.prediction_text
        if prediction.recommended_action:
            description = f"{description}\n\nRecommended action: {prediction.recommended_action}"
        return {
            "assetId": prediction.asset_id,
            "predictionId": str(prediction.id),
            "title": f"Predictive maintenance: {asset_label}",
            "description": description,
            "type": "predictive",
            "priority": priority,
            "riskLevel": prediction.risk_level.value,
            "probability": prediction.probability,
            "estimatedCost": prediction.estimated_cost,
            "dueDate": (
                prediction.predicted_date.isoformat()
                if prediction.predicted_date
                else None
            ),
        }

    async def create_from_prediction(
        self,
        context: RequestContext,
        prediction: Prediction,
        priority: str,
        asset: Optional[AssetInfo] = None,
    ) -> str:
        url = f"{self.base_url}/work-orders/from-prediction"
        headers = {
            TENANT_HEADER: context.tenant_id,
            ACTOR_HEADER: context.actor_id,
            IDEMPOTENCY_HEADER: f"prediction-{prediction.id}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(prediction, priority, asset)

        logger.info(
            "work_orders.create.request",
            prediction_id=str(prediction.id),
            asset_id=prediction.asset_id,
            priority=priority,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "work_orders.create.http_error",
                status_code=e.response.status_code,
                response_text=e.response.text,
                prediction_id=str(prediction.id),
            )
            raise WorkOrderGatewayError(
                f"Work-order system HTTP error {e.response.status_code}",
                {"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error(
                "work_orders.create.request_error",
                error=str(e),
                prediction_id=str(prediction.id),
            )
            raise WorkOrderGatewayError(
                f"Work-order system request failed: {str(e)}"
            ) from e
        except ValueError as e:
            raise WorkOrderGatewayError(
                f"Work-order system returned invalid JSON: {e}"
            ) from e

        work_order_ref = body.get("id") if isinstance(body, dict) else None
        if not work_order_ref:
            raise WorkOrderGatewayError(
                "Work-order system response has no work order id",
                {"response": body},
            )

        logger.info(
            "work_orders.create.response",
            prediction_id=str(prediction.id),
            work_order_ref=str(work_order_ref),
        )
        return str(work_order_ref)
