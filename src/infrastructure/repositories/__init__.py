"""
Repositories Package - Infrastructure Layer

This package contains concrete implementations of the repository
interfaces defined in the domain layer. These implementations
handle the details of data persistence.
"""

from .anomaly_repository import AnomalyRepository
from .model_repository import ModelRepository
from .prediction_repository import PredictionRepository

__all__ = ["AnomalyRepository", "ModelRepository", "PredictionRepository"]
