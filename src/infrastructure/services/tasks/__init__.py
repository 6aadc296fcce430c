"""Celery task implementations for infrastructure services."""

from .base import CallbackTask, logger
from .scoring_execution import execute_scoring_run
from .scoring_scheduler import schedule_scoring_runs

__all__ = [
    "CallbackTask",
    "execute_scoring_run",
    "logger",
    "schedule_scoring_runs",
]
