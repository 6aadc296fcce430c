"""
Model DTOs - Application Layer

This module defines Data Transfer Objects (DTOs) for the model entities.
These DTOs are used to transfer data between the application layer and
the presentation layer (API).
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.entities.model import (
    Model,
    ModelParameters,
    ModelStatus,
    ModelType,
    TrainingStats,
)
from src.domain.entities.telemetry import SensorType


class ModelParametersDTO(BaseModel):
    """Estimator parameters; omitted fields fall back to the type defaults."""

    window_size: Optional[int] = Field(
        None, description="Readings forming the anomaly baseline"
    )
    z_score_threshold: Optional[float] = Field(
        None, description="Z-score threshold adapted from the training data"
    )
    iqr_multiplier: Optional[float] = Field(
        None, description="Fence width of the constant-baseline IQR test"
    )
    alpha: Optional[float] = Field(None, description="Level smoothing constant")
    beta: Optional[float] = Field(None, description="Trend smoothing constant")
    degradation_threshold: Optional[float] = Field(
        None, description="Slope magnitude that signals degradation"
    )
    weibull_shape: Optional[float] = Field(None, description="Weibull shape (beta)")
    weibull_scale_hours: Optional[float] = Field(
        None, description="Weibull scale (eta) in hours"
    )
    min_data_points: Optional[int] = Field(
        None, description="Readings required before training"
    )

    def overrides(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_domain(cls, parameters: ModelParameters) -> "ModelParametersDTO":
        return cls(**parameters.to_dict())


class TrainingStatsDTO(BaseModel):
    """Statistics of the data used in the last training run."""

    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    q1: float
    q2: float
    q3: float

    @classmethod
    def from_domain(cls, stats: TrainingStats) -> "TrainingStatsDTO":
        return cls(
            count=stats.count,
            mean=stats.mean,
            std_dev=stats.std_dev,
            min=stats.min,
            max=stats.max,
            q1=stats.q1,
            q2=stats.q2,
            q3=stats.q3,
        )


class ModelCreateDTO(BaseModel):
    """DTO for creating a new model."""

    name: str = Field(..., description="Name of the model", min_length=1)
    description: Optional[str] = Field(None, description="Description of the model")
    asset_type: str = Field(
        ..., description="Asset type governed by the model", min_length=1
    )
    model_type: ModelType = Field(..., description="Estimator parameterised")
    sensor_type: Optional[SensorType] = Field(
        None, description="Restrict the model to one sensor stream"
    )
    parameters: Optional[ModelParametersDTO] = Field(
        None, description="Overrides for the type default parameters"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Pump vibration anomalies",
                "description": "Z-score detector for centrifugal pumps",
                "asset_type": "pump",
                "model_type": "anomaly_detection",
                "sensor_type": "vibration",
                "parameters": {"window_size": 100, "iqr_multiplier": 1.5},
            }
        }
    }


class TrainModelRequestDTO(BaseModel):
    """DTO for requesting a training run."""

    historical_days: int = Field(
        90, description="Days of history to train on", ge=1, le=365
    )


class ModelResponseDTO(BaseModel):
    """DTO for model responses."""

    id: UUID
    name: str
    description: Optional[str] = None
    asset_type: str
    model_type: ModelType
    sensor_type: Optional[SensorType] = None
    status: ModelStatus
    parameters: ModelParametersDTO
    accuracy: Optional[float] = None
    training_data_points: int = 0
    training_stats: Optional[TrainingStatsDTO] = None
    total_predictions: int = 0
    correct_predictions: int = 0
    last_trained_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, model: Model) -> "ModelResponseDTO":
        return cls(
            id=model.id,
            name=model.name,
            description=model.description,
            asset_type=model.asset_type,
            model_type=model.model_type,
            sensor_type=model.sensor_type,
            status=model.status,
            parameters=ModelParametersDTO.from_domain(model.parameters),
            accuracy=model.accuracy,
            training_data_points=model.training_data_points,
            training_stats=(
                TrainingStatsDTO.from_domain(model.training_stats)
                if model.training_stats
                else None
            ),
            total_predictions=model.total_predictions,
            correct_predictions=model.correct_predictions,
            last_trained_at=model.last_trained_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                "name": "Pump vibration anomalies",
                "asset_type": "pump",
                "model_type": "anomaly_detection",
                "sensor_type": "vibration",
                "status": "active",
                "parameters": {
                    "window_size": 100,
                    "z_score_threshold": 3.0,
                    "iqr_multiplier": 1.5,
                    "alpha": 0.3,
                    "beta": 0.1,
                    "degradation_threshold": 0.05,
                    "weibull_shape": 2.5,
                    "weibull_scale_hours": 87600.0,
                    "min_data_points": 30,
                },
                "accuracy": 88.0,
                "training_data_points": 4320,
                "last_trained_at": "2025-09-20T02:15:00Z",
                "created_at": "2025-09-01T10:00:00Z",
                "updated_at": "2025-09-20T02:15:00Z",
            }
        }
    }
