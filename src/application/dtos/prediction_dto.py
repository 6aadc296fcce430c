"""
Prediction DTOs - Application Layer

Data Transfer Objects for predictions and the lifecycle requests that act on
them.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities.prediction import (
    DismissalReason,
    Factor,
    Prediction,
    PredictionStatus,
    PredictionType,
)
from src.domain.entities.risk import RiskLevel


class FactorDTO(BaseModel):
    """A weighted input that contributed to a prediction."""

    name: str = Field(..., description="Factor name")
    value: float = Field(..., description="Observed value of the factor")
    contribution: float = Field(
        ..., description="Share of the probability explained by the factor (0-100)"
    )
    threshold: Optional[float] = Field(None, description="Reference threshold")
    unit: Optional[str] = Field(None, description="Unit of the observed value")
    description: Optional[str] = Field(None, description="Human readable note")

    @classmethod
    def from_domain(cls, factor: Factor) -> "FactorDTO":
        return cls(
            name=factor.name,
            value=factor.value,
            contribution=factor.contribution,
            threshold=factor.threshold,
            unit=factor.unit,
            description=factor.description,
        )


class PredictionResponseDTO(BaseModel):
    """DTO for prediction responses."""

    id: UUID
    asset_id: str
    prediction_type: PredictionType
    prediction_text: str
    probability: float = Field(..., description="Probability in percent (0-100)")
    confidence: float = Field(..., description="Confidence in percent (0-100)")
    low_confidence: bool = Field(
        False, description="Set when the reviewer should treat the result with care"
    )
    risk_level: RiskLevel
    status: PredictionStatus
    factors: List[FactorDTO] = Field(default_factory=list)
    recommended_action: Optional[str] = None
    predicted_date: Optional[datetime] = None
    remaining_life_days: Optional[float] = None
    estimated_cost: Optional[float] = None
    potential_savings: Optional[float] = None
    model_id: Optional[UUID] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    work_order_ref: Optional[str] = None
    work_order_created_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None
    dismissed_by: Optional[str] = None
    dismissal_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    was_accurate: Optional[bool] = None
    actual_failure_date: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, prediction: Prediction) -> "PredictionResponseDTO":
        return cls(
            id=prediction.id,
            asset_id=prediction.asset_id,
            prediction_type=prediction.prediction_type,
            prediction_text=prediction.prediction_text,
            probability=prediction.probability,
            confidence=prediction.confidence,
            low_confidence=prediction.low_confidence,
            risk_level=prediction.risk_level,
            status=prediction.status,
            factors=[FactorDTO.from_domain(factor) for factor in prediction.factors],
            recommended_action=prediction.recommended_action,
            predicted_date=prediction.predicted_date,
            remaining_life_days=prediction.remaining_life_days,
            estimated_cost=prediction.estimated_cost,
            potential_savings=prediction.potential_savings,
            model_id=prediction.model_id,
            acknowledged_at=prediction.acknowledged_at,
            acknowledged_by=prediction.acknowledged_by,
            work_order_ref=prediction.work_order_ref,
            work_order_created_at=prediction.work_order_created_at,
            dismissed_at=prediction.dismissed_at,
            dismissed_by=prediction.dismissed_by,
            dismissal_notes=prediction.dismissal_notes,
            resolved_at=prediction.resolved_at,
            resolution_notes=prediction.resolution_notes,
            was_accurate=prediction.was_accurate,
            actual_failure_date=prediction.actual_failure_date,
            version=prediction.version,
            created_at=prediction.created_at,
            updated_at=prediction.updated_at,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                "asset_id": "pump-17",
                "prediction_type": "failure",
                "prediction_text": "Failure predicted within 43 days (70% probability)",
                "probability": 70.0,
                "confidence": 85.0,
                "low_confidence": False,
                "risk_level": "high",
                "status": "new",
                "factors": [
                    {
                        "name": "Anomaly Frequency",
                        "value": 6,
                        "contribution": 28.0,
                        "threshold": 5,
                        "unit": "anomalies",
                    }
                ],
                "recommended_action": "Plan maintenance within the next 7 days.",
                "estimated_cost": 2500.0,
                "potential_savings": 3500.0,
                "version": 0,
                "created_at": "2025-09-21T02:00:00Z",
                "updated_at": "2025-09-21T02:00:00Z",
            }
        }
    }


class DismissPredictionDTO(BaseModel):
    """Body of a dismissal request."""

    reason: DismissalReason = Field(
        DismissalReason.DISMISSED,
        description="Terminal outcome: 'dismissed' or 'false_positive'",
    )
    notes: Optional[str] = Field(None, description="Reviewer notes", max_length=2000)

    model_config = {
        "json_schema_extra": {
            "example": {"reason": "false_positive", "notes": "Sensor recalibrated"}
        }
    }


class ResolvePredictionDTO(BaseModel):
    """Body sent by the work-order system when the work order is completed."""

    resolution_notes: Optional[str] = Field(None, max_length=2000)
    was_accurate: Optional[bool] = Field(
        None, description="Whether the predicted condition was confirmed on site"
    )
    actual_failure_date: Optional[datetime] = None


class GenerateWorkOrderDTO(BaseModel):
    """Body of a work-order generation request."""

    prediction_id: UUID = Field(..., description="Prediction to convert")


class WorkOrderResponseDTO(BaseModel):
    """Result of converting a prediction into a work order."""

    work_order_ref: str = Field(..., description="Reference in the work-order system")
    prediction: PredictionResponseDTO
