"""Domain ports package."""

from .health_check import IHealthCheckService
from .scoring_dispatcher import IScoringDispatcher

__all__ = ["IHealthCheckService", "IScoringDispatcher"]
