"""DTOs for the predictive maintenance dashboard."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.domain.entities.risk import RiskLevel

from .prediction_dto import PredictionResponseDTO


class RiskCountsDTO(BaseModel):
    """Open predictions per risk level."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class AssetHealthScoreDTO(BaseModel):
    """Health of an asset with open predictions."""

    asset_id: str
    asset_name: str
    health_score: float = Field(
        ..., description="100 minus the highest open prediction probability"
    )
    risk_level: RiskLevel


class DashboardSummaryDTO(BaseModel):
    """Aggregated view of the tenant's predictive maintenance state."""

    active_predictions: int = Field(..., description="Open predictions")
    risk_counts: RiskCountsDTO
    anomalies_last_24h: int
    failures_prevented: int = Field(
        ..., description="Resolved predictions confirmed as accurate"
    )
    potential_savings: float = Field(
        ..., description="Savings of predictions converted into work orders"
    )
    model_accuracy: Optional[float] = Field(
        None, description="Mean accuracy of active models, absent when unknown"
    )
    assets_monitored: int
    predictions_by_type: Dict[str, int] = Field(default_factory=dict)
    recent_predictions: List[PredictionResponseDTO] = Field(default_factory=list)
    asset_health_scores: List[AssetHealthScoreDTO] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "active_predictions": 4,
                "risk_counts": {"critical": 1, "high": 1, "medium": 2, "low": 0},
                "anomalies_last_24h": 3,
                "failures_prevented": 12,
                "potential_savings": 41250.0,
                "model_accuracy": 87.5,
                "assets_monitored": 25,
                "predictions_by_type": {"anomaly": 2, "failure": 2},
                "recent_predictions": [],
                "asset_health_scores": [
                    {
                        "asset_id": "pump-17",
                        "asset_name": "Cooling pump 17",
                        "health_score": 30.0,
                        "risk_level": "high",
                    }
                ],
            }
        }
    }
