"""
Repositories Package

This package contains interfaces defining repository contracts
for data access operations. Specific implementations are provided
by the infrastructure layer.
"""

from .anomaly_repository import IAnomalyRepository
from .model_repository import IModelRepository
from .prediction_repository import IPredictionRepository

__all__ = ["IAnomalyRepository", "IModelRepository", "IPredictionRepository"]
