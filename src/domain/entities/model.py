"""
Domain Entities - Model

This module defines the core domain entities related to prediction models.
A model governs the estimator parameters used for every asset of a given
asset type, and records how well it has performed.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from .telemetry import SensorType


class ModelType(str, Enum):
    """Kind of estimator a model parameterises."""

    ANOMALY_DETECTION = "anomaly_detection"
    FAILURE_PREDICTION = "failure_prediction"
    REMAINING_LIFE = "remaining_life"


class ModelStatus(str, Enum):
    """Status of the model."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    TRAINING = "training"
    FAILED = "failed"


@dataclass(frozen=True)
class ModelParameters:
    """Estimator parameters supplied by the model registry."""

    window_size: int = 100
    z_score_threshold: float = 3.0
    iqr_multiplier: float = 1.5
    alpha: float = 0.3
    beta: float = 0.1
    degradation_threshold: float = 0.05
    weibull_shape: float = 2.5
    weibull_scale_hours: float = 3650 * 24.0
    min_data_points: int = 30

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merged_with(self, overrides: Optional[Dict[str, Any]]) -> "ModelParameters":
        """Return a copy with the non-null overrides applied."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        changes = {
            key: value
            for key, value in overrides.items()
            if key in known and value is not None
        }
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "ModelParameters":
        return cls().merged_with(payload)


DEFAULT_PARAMETERS: Dict[ModelType, ModelParameters] = {
    ModelType.ANOMALY_DETECTION: ModelParameters(
        window_size=100,
        z_score_threshold=3.0,
        iqr_multiplier=1.5,
        min_data_points=30,
    ),
    ModelType.FAILURE_PREDICTION: ModelParameters(
        window_size=30,
        alpha=0.3,
        beta=0.1,
        degradation_threshold=0.05,
        min_data_points=50,
    ),
    ModelType.REMAINING_LIFE: ModelParameters(
        weibull_shape=2.5,
        weibull_scale_hours=3650 * 24.0,
        min_data_points=10,
    ),
}


@dataclass(frozen=True)
class TrainingStats:
    """Descriptive statistics of the data a model was last trained on."""

    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    q1: float
    q2: float
    q3: float

    @property
    def coefficient_of_variation(self) -> float:
        if self.mean == 0:
            return float("inf") if self.std_dev > 0 else 0.0
        return self.std_dev / abs(self.mean)


@dataclass
class Model:
    """Represents a prediction model registered for an asset type."""

    id: UUID = field(default_factory=uuid4)
    tenant_id: str = ""
    name: str = ""
    description: Optional[str] = None
    asset_type: str = ""
    model_type: ModelType = ModelType.ANOMALY_DETECTION
    sensor_type: Optional[SensorType] = None
    status: ModelStatus = ModelStatus.ACTIVE
    parameters: ModelParameters = field(default_factory=ModelParameters)

    # Performance tracking
    accuracy: Optional[float] = None
    training_data_points: int = 0
    training_stats: Optional[TrainingStats] = None
    total_predictions: int = 0
    correct_predictions: int = 0
    last_trained_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def update_timestamp(self) -> None:
        """Update the 'updated_at' timestamp to current time."""
        self.updated_at = datetime.now(timezone.utc)

    @property
    def is_active(self) -> bool:
        return self.status == ModelStatus.ACTIVE

    def mark_training(self) -> None:
        self.status = ModelStatus.TRAINING
        self.update_timestamp()

    def mark_failed(self) -> None:
        self.status = ModelStatus.FAILED
        self.update_timestamp()

    def record_training_run(
        self,
        accuracy: Optional[float],
        data_points: int,
        trained_at: datetime,
    ) -> None:
        """Store the outcome of a training run and reactivate the model."""
        if accuracy is not None and not 0.0 <= accuracy <= 100.0:
            raise ValueError(f"accuracy must be within 0..100, got {accuracy}")
        if data_points < 0:
            raise ValueError("data_points must be non-negative")
        if accuracy is not None:
            self.accuracy = accuracy
        self.training_data_points = data_points
        self.last_trained_at = trained_at
        if self.status == ModelStatus.TRAINING:
            self.status = ModelStatus.ACTIVE
        self.update_timestamp()
