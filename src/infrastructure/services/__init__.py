"""Infrastructure services package."""

from . import tasks
from .celery_config import celery_app
from .health_check_service import HealthCheckService
from .scoring_dispatcher import CeleryScoringDispatcher

__all__ = ["celery_app", "tasks", "CeleryScoringDispatcher", "HealthCheckService"]
