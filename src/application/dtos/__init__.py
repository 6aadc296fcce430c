"""
DTOs Package - Application Layer

This package contains Data Transfer Objects (DTOs) used for data exchange
between the application layer and the presentation layer.
"""

from .anomaly_dto import AnomalyResponseDTO
from .dashboard_dto import AssetHealthScoreDTO, DashboardSummaryDTO, RiskCountsDTO
from .health_dto import ApplicationInfoDTO, DependencyStatusDTO, SystemHealthDTO
from .model_dto import (
    ModelCreateDTO,
    ModelParametersDTO,
    ModelResponseDTO,
    TrainingStatsDTO,
    TrainModelRequestDTO,
)
from .prediction_dto import (
    DismissPredictionDTO,
    FactorDTO,
    GenerateWorkOrderDTO,
    PredictionResponseDTO,
    ResolvePredictionDTO,
    WorkOrderResponseDTO,
)
from .scoring_dto import (
    AbstentionDTO,
    ReadingsArrivedDTO,
    ScoringDispatchDTO,
    ScoringOutcome,
    ScoringReportDTO,
)

__all__ = [
    "AnomalyResponseDTO",
    "AssetHealthScoreDTO",
    "DashboardSummaryDTO",
    "RiskCountsDTO",
    "SystemHealthDTO",
    "DependencyStatusDTO",
    "ApplicationInfoDTO",
    "ModelCreateDTO",
    "ModelParametersDTO",
    "ModelResponseDTO",
    "TrainingStatsDTO",
    "TrainModelRequestDTO",
    "DismissPredictionDTO",
    "FactorDTO",
    "GenerateWorkOrderDTO",
    "PredictionResponseDTO",
    "ResolvePredictionDTO",
    "WorkOrderResponseDTO",
    "AbstentionDTO",
    "ScoringOutcome",
    "ScoringReportDTO",
    "ReadingsArrivedDTO",
    "ScoringDispatchDTO",
]
