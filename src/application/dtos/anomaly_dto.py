"""DTOs for recorded anomalies."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities.anomaly import Anomaly, DetectionMethod
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType


class AnomalyResponseDTO(BaseModel):
    """Serializable representation of a recorded anomaly."""

    id: UUID
    asset_id: str
    sensor_type: SensorType
    value: float
    unit: Optional[str] = None
    z_score: Optional[float] = Field(
        None, description="Absent when the IQR fallback flagged the reading"
    )
    severity: RiskLevel
    method: DetectionMethod
    baseline_mean: float
    baseline_std_dev: float
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    message: Optional[str] = None
    timestamp: datetime
    created_at: datetime

    @classmethod
    def from_domain(cls, anomaly: Anomaly) -> "AnomalyResponseDTO":
        return cls(
            id=anomaly.id,
            asset_id=anomaly.asset_id,
            sensor_type=anomaly.sensor_type,
            value=anomaly.value,
            unit=anomaly.unit,
            z_score=anomaly.z_score,
            severity=anomaly.severity,
            method=anomaly.method,
            baseline_mean=anomaly.baseline_mean,
            baseline_std_dev=anomaly.baseline_std_dev,
            lower_bound=anomaly.lower_bound,
            upper_bound=anomaly.upper_bound,
            message=anomaly.message,
            timestamp=anomaly.timestamp,
            created_at=anomaly.created_at,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "0b6c2f1e-8f55-4c39-9d5e-0e7d2d1c8a11",
                "asset_id": "pump-17",
                "sensor_type": "vibration",
                "value": 12.4,
                "unit": "mm/s",
                "z_score": 4.2,
                "severity": "critical",
                "method": "z_score",
                "baseline_mean": 4.1,
                "baseline_std_dev": 1.98,
                "message": "vibration reading 12.4 is 4.20 standard deviations above the mean",
                "timestamp": "2025-09-21T01:55:00Z",
                "created_at": "2025-09-21T02:00:03Z",
            }
        }
    }
