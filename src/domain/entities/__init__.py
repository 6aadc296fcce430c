"""
Domain Entities Package

This package contains the core domain entities and business logic.
"""

from .anomaly import Anomaly, DetectionMethod, reading_instant
from .asset import AssetInfo
from .context import RequestContext
from .errors import (
    ActiveModelNotFoundError,
    AssetRegistryError,
    AssetNotFoundError,
    ConcurrentUpdateError,
    DomainError,
    DuplicateAnomalyError,
    DuplicateOpenPredictionError,
    GatewayError,
    InsufficientDataError,
    InvalidTransitionError,
    MetricStoreError,
    ModelConfigurationError,
    ModelNotFoundError,
    ModelOperationError,
    ModelValidationError,
    PredictionNotFoundError,
    WorkOrderGatewayError,
)
from .health import ApplicationInfo, DependencyStatus, ServiceStatus, SystemHealth
from .model import (
    DEFAULT_PARAMETERS,
    Model,
    ModelParameters,
    ModelStatus,
    ModelType,
    TrainingStats,
)
from .prediction import (
    DismissalReason,
    Factor,
    Prediction,
    PredictionScore,
    PredictionStatus,
    PredictionType,
)
from .risk import RiskLevel
from .telemetry import Reading, SensorType

__all__ = [
    "Anomaly",
    "DetectionMethod",
    "reading_instant",
    "AssetInfo",
    "RequestContext",
    "Model",
    "ModelType",
    "ModelStatus",
    "ModelParameters",
    "TrainingStats",
    "DEFAULT_PARAMETERS",
    "Prediction",
    "PredictionScore",
    "PredictionStatus",
    "PredictionType",
    "DismissalReason",
    "Factor",
    "RiskLevel",
    "Reading",
    "SensorType",
    "SystemHealth",
    "DependencyStatus",
    "ServiceStatus",
    "ApplicationInfo",
    "DomainError",
    "DuplicateAnomalyError",
    "DuplicateOpenPredictionError",
    "ActiveModelNotFoundError",
    "AssetNotFoundError",
    "ConcurrentUpdateError",
    "InsufficientDataError",
    "InvalidTransitionError",
    "ModelConfigurationError",
    "ModelNotFoundError",
    "ModelValidationError",
    "ModelOperationError",
    "PredictionNotFoundError",
    "GatewayError",
    "MetricStoreError",
    "WorkOrderGatewayError",
    "AssetRegistryError",
]
