"""
Use Cases Package - Application Layer

This package contains the use cases of the engine: the scoring pipeline and
its dispatch on reading arrival, the prediction lifecycle, the model registry,
dashboard queries and the health endpoints.
"""

from .dashboard_use_cases import GetAnomaliesUseCase, GetDashboardSummaryUseCase
from .health_use_cases import GetApplicationInfoUseCase, GetHealthStatusUseCase
from .model_use_cases import (
    CreateModelUseCase,
    GetModelsUseCase,
    ModelRegistry,
    TrainModelUseCase,
)
from .prediction_lifecycle import PredictionLifecycleManager
from .prediction_use_cases import (
    AcknowledgePredictionUseCase,
    DismissPredictionUseCase,
    GenerateWorkOrderUseCase,
    GetPredictionsUseCase,
    ResolvePredictionUseCase,
)
from .scoring_dispatch_use_case import DispatchScoringRunUseCase
from .scoring_use_case import AssetScoringUseCase

__all__ = [
    "AssetScoringUseCase",
    "DispatchScoringRunUseCase",
    "PredictionLifecycleManager",
    "ModelRegistry",
    "CreateModelUseCase",
    "GetModelsUseCase",
    "TrainModelUseCase",
    "AcknowledgePredictionUseCase",
    "DismissPredictionUseCase",
    "GenerateWorkOrderUseCase",
    "GetPredictionsUseCase",
    "ResolvePredictionUseCase",
    "GetAnomaliesUseCase",
    "GetDashboardSummaryUseCase",
    "GetApplicationInfoUseCase",
    "GetHealthStatusUseCase",
]
