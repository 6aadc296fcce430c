"""DTOs describing the outcome of a scoring run for one asset."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from src.domain.entities.prediction import PredictionType

from .anomaly_dto import AnomalyResponseDTO
from .prediction_dto import PredictionResponseDTO


class ScoringOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"


class AbstentionDTO(BaseModel):
    """A prediction type that produced no result in this run."""

    prediction_type: PredictionType
    reason: str


class ScoringReportDTO(BaseModel):
    """Result of running the scoring pipeline for one asset."""

    asset_id: str
    outcome: ScoringOutcome
    started_at: datetime
    finished_at: datetime
    streams_analyzed: int = 0
    predictions: List[PredictionResponseDTO] = Field(default_factory=list)
    anomalies: List[AnomalyResponseDTO] = Field(default_factory=list)
    abstentions: List[AbstentionDTO] = Field(default_factory=list)
    issues: List[str] = Field(
        default_factory=list,
        description="Configuration problems that caused the asset to be skipped",
    )


class ReadingsArrivedDTO(BaseModel):
    """Notice from the telemetry pipeline that an asset has new readings."""

    asset_id: str = Field(..., min_length=1, description="Asset that reported")


class ScoringDispatchDTO(BaseModel):
    """A scoring run queued for background execution."""

    asset_id: str
    task_id: str = Field(..., description="Worker task id, empty when unknown")
    dispatched_at: datetime
