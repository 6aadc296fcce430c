"""
Risk Classifier - Domain Service

Deterministic thresholds on probability (percent):

    probability >= 75 -> critical
    probability >= 50 -> high
    probability >= 25 -> medium
    otherwise         -> low

Anomaly-driven predictions pass the anomaly severity through unchanged.
Confidence never changes the level; it is carried alongside it.
"""

from dataclasses import dataclass
from typing import Optional

from src.domain.entities.risk import RiskLevel

LOW_CONFIDENCE_THRESHOLD = 50.0

_PROBABILITY_THRESHOLDS = (
    (75.0, RiskLevel.CRITICAL),
    (50.0, RiskLevel.HIGH),
    (25.0, RiskLevel.MEDIUM),
)


@dataclass(frozen=True)
class RiskAssessment:
    risk_level: RiskLevel
    confidence: float
    low_confidence: bool


def _check_percentage(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be within 0..100, got {value}")


def classify(
    probability: float,
    confidence: float,
    anomaly_severity: Optional[RiskLevel] = None,
) -> RiskLevel:
    _check_percentage("probability", probability)
    _check_percentage("confidence", confidence)
    if anomaly_severity is not None:
        return anomaly_severity
    for threshold, level in _PROBABILITY_THRESHOLDS:
        if probability >= threshold:
            return level
    return RiskLevel.LOW


def assess(
    probability: float,
    confidence: float,
    anomaly_severity: Optional[RiskLevel] = None,
) -> RiskAssessment:
    """Classify and flag low-confidence results for the reviewer."""
    return RiskAssessment(
        risk_level=classify(probability, confidence, anomaly_severity),
        confidence=confidence,
        low_confidence=confidence < LOW_CONFIDENCE_THRESHOLD,
    )
