"""
Domain Services Package

Pure, synchronous statistical services and policies of the engine. None of
them performs I/O.
"""

from .anomaly_detector import (
    MIN_BASELINE_READINGS,
    detect,
    scan,
    severity_for_z_score,
)
from .model_validator import collect_parameter_errors, validate_model_configuration
from .remaining_life import LifeEstimate, estimate
from .risk_classifier import RiskAssessment, assess, classify
from .statistics import adaptive_z_threshold, describe
from .trend_estimator import TrendEstimator, TrendState, smooth

__all__ = [
    "MIN_BASELINE_READINGS",
    "detect",
    "scan",
    "severity_for_z_score",
    "collect_parameter_errors",
    "validate_model_configuration",
    "LifeEstimate",
    "estimate",
    "RiskAssessment",
    "assess",
    "classify",
    "adaptive_z_threshold",
    "describe",
    "TrendEstimator",
    "TrendState",
    "smooth",
]
