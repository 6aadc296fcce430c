"""
Prediction scoring policy.

Turns detector, trend and survival results into ``PredictionScore`` values:
probability, confidence, factors, risk level, recommended action and cost.

Failure probability model (each factor is capped, then the sum is
normalised by the total weight so that the factor contributions add up to
the probability):

    factor                  cap   raw contribution
    Anomaly Frequency        30   anomaly rate (%) * 3
    Days Since Maintenance   25   days / 90 * 15 (365 days when unknown)
    Recent Work Orders       20   work orders in the last 90 days * 4
    Asset Criticality        15   criticality * 3
    Trend Direction          10   10 above the degradation threshold, 5 when
                                  rising, else 0; only with >= 10 readings
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from src.domain.entities.anomaly import Anomaly, DetectionMethod
from src.domain.entities.asset import AssetInfo
from src.domain.entities.prediction import Factor, PredictionScore, PredictionType
from src.domain.entities.telemetry import SensorType

from . import recommendations
from .remaining_life import LifeEstimate
from .risk_classifier import assess
from .trend_estimator import TrendState

MAINTENANCE_INTERVAL_DAYS = 90
UNKNOWN_MAINTENANCE_DAYS = 365
TREND_MIN_READINGS = 10

_FAILURE_WEIGHTS = {
    "anomaly_frequency": 30.0,
    "maintenance_age": 25.0,
    "work_orders": 20.0,
    "criticality": 15.0,
    "trend": 10.0,
}

_LIFE_FACTOR_SHARES = (
    ("Current Age", 40.0),
    ("Survival Probability", 30.0),
    ("Hazard Rate", 20.0),
    ("Degradation Trend", 10.0),
)


@dataclass(frozen=True)
class StreamTrend:
    """Trend of one sensor stream together with the data behind it."""

    sensor_type: SensorType
    state: TrendState
    sample_size: int

    def ratio(self, threshold: float) -> float:
        return abs(self.state.slope) / threshold


def driving_trend(
    trends: List[StreamTrend], threshold: float
) -> Optional[StreamTrend]:
    """The stream whose slope is largest relative to the threshold."""
    if not trends:
        return None
    return max(trends, key=lambda trend: trend.ratio(threshold))


def most_severe(anomalies: List[Anomaly]) -> Optional[Anomaly]:
    """Highest severity first, then largest deviation."""
    if not anomalies:
        return None
    return max(anomalies, key=lambda a: (a.severity.rank, a.deviation))


def anomaly_probability(anomaly: Anomaly) -> float:
    if anomaly.method == DetectionMethod.IQR or anomaly.z_score is None:
        return 100.0
    return min(100.0, abs(anomaly.z_score) * 20.0)


def anomaly_score(
    anomaly: Anomaly,
    z_score_threshold: float = 3.0,
    model_id: Optional[UUID] = None,
) -> PredictionScore:
    probability = anomaly_probability(anomaly)
    confidence = recommendations.data_confidence(anomaly.baseline_size)
    assessment = assess(probability, confidence, anomaly_severity=anomaly.severity)

    if anomaly.z_score is None:
        threshold = anomaly.upper_bound
        description = (
            f"Reading outside the constant baseline range "
            f"[{anomaly.lower_bound:g}, {anomaly.upper_bound:g}]"
        )
    else:
        threshold = (
            anomaly.baseline_mean + z_score_threshold * anomaly.baseline_std_dev
        )
        description = (
            f"Current value deviates {abs(anomaly.z_score):.2f} standard "
            f"deviations from mean"
        )

    return PredictionScore(
        asset_id=anomaly.asset_id,
        prediction_type=PredictionType.ANOMALY,
        prediction_text=(
            f"Anomaly detected in {anomaly.sensor_type.value} readings: "
            f"{anomaly.message}"
        ),
        probability=probability,
        confidence=assessment.confidence,
        low_confidence=assessment.low_confidence,
        risk_level=assessment.risk_level,
        factors=[
            Factor(
                name="Sensor Reading",
                value=anomaly.value,
                contribution=100.0,
                threshold=threshold,
                unit=anomaly.unit,
                description=description,
            )
        ],
        recommended_action=recommendations.recommended_action(
            assessment.risk_level, anomaly.sensor_type
        ),
        estimated_cost=recommendations.estimate_repair_cost(assessment.risk_level),
        model_id=model_id,
    )


def degradation_score(
    asset_id: str,
    trend: StreamTrend,
    threshold: float,
    model_id: Optional[UUID] = None,
) -> PredictionScore:
    """Score a stream whose slope magnitude exceeds ``threshold``."""
    slope = trend.state.slope
    probability = min(100.0, 50.0 * abs(slope) / threshold)
    confidence = recommendations.data_confidence(trend.sample_size)
    assessment = assess(probability, confidence)
    sensor = trend.sensor_type.value

    return PredictionScore(
        asset_id=asset_id,
        prediction_type=PredictionType.DEGRADATION,
        prediction_text=(
            f"{sensor.capitalize()} readings are {trend.state.direction} "
            f"at {slope:+.4f} per reading"
        ),
        probability=round(probability, 2),
        confidence=assessment.confidence,
        low_confidence=assessment.low_confidence,
        risk_level=assessment.risk_level,
        factors=[
            Factor(
                name="Trend Slope",
                value=slope,
                contribution=round(probability, 2),
                threshold=threshold,
                description=(
                    f"Smoothed {sensor} level {trend.state.smoothed:g} over "
                    f"{trend.sample_size} readings"
                ),
            )
        ],
        recommended_action=recommendations.recommended_action(
            assessment.risk_level, trend.sensor_type
        ),
        estimated_cost=recommendations.estimate_repair_cost(assessment.risk_level),
        potential_savings=recommendations.potential_savings(probability),
        model_id=model_id,
    )


def _trend_contribution(slope: float, threshold: float) -> Tuple[float, str]:
    if slope > threshold:
        return 10.0, "Strong upward trend detected"
    if slope > 0:
        return 5.0, "Slight upward trend"
    return 0.0, "Stable or decreasing trend"


def failure_confidence(readings_count: int, work_order_count: int) -> float:
    readings_part = 40.0 if readings_count >= 100 else readings_count * 0.4
    history_part = 30.0 if work_order_count >= 5 else work_order_count * 6.0
    return round(min(95.0, readings_part + history_part + 25.0), 2)


def failure_score(
    asset: AssetInfo,
    readings_count: int,
    anomaly_count: int,
    recent_work_orders: int,
    trend: Optional[StreamTrend],
    degradation_threshold: float,
    now: datetime,
    model_id: Optional[UUID] = None,
) -> PredictionScore:
    raw: List[Tuple[str, float, float, Factor]] = []

    anomaly_rate = (anomaly_count / readings_count * 100.0) if readings_count else 0.0
    raw.append(
        (
            "anomaly_frequency",
            min(30.0, anomaly_rate * 3.0),
            _FAILURE_WEIGHTS["anomaly_frequency"],
            Factor(
                name="Anomaly Frequency",
                value=round(anomaly_rate, 2),
                contribution=0.0,
                threshold=10.0,
                unit="%",
                description=(
                    f"{anomaly_count} anomalies detected in {readings_count} readings"
                ),
            ),
        )
    )

    days = asset.days_since_maintenance(now)
    if days is None:
        days = UNKNOWN_MAINTENANCE_DAYS
    raw.append(
        (
            "maintenance_age",
            min(25.0, days / MAINTENANCE_INTERVAL_DAYS * 15.0),
            _FAILURE_WEIGHTS["maintenance_age"],
            Factor(
                name="Days Since Maintenance",
                value=float(days),
                contribution=0.0,
                threshold=float(MAINTENANCE_INTERVAL_DAYS),
                unit="days",
                description=f"Last maintained {days} days ago",
            ),
        )
    )

    raw.append(
        (
            "work_orders",
            min(20.0, recent_work_orders * 4.0),
            _FAILURE_WEIGHTS["work_orders"],
            Factor(
                name="Recent Work Orders",
                value=float(recent_work_orders),
                contribution=0.0,
                threshold=3.0,
                description=f"{recent_work_orders} work orders in last 90 days",
            ),
        )
    )

    criticality = min(5, max(1, asset.criticality))
    raw.append(
        (
            "criticality",
            criticality * 3.0,
            _FAILURE_WEIGHTS["criticality"],
            Factor(
                name="Asset Criticality",
                value=float(criticality),
                contribution=0.0,
                threshold=5.0,
                description=f"Criticality level: {criticality}/5",
            ),
        )
    )

    if trend is not None and trend.sample_size >= TREND_MIN_READINGS:
        contribution, description = _trend_contribution(
            trend.state.slope, degradation_threshold
        )
        raw.append(
            (
                "trend",
                contribution,
                _FAILURE_WEIGHTS["trend"],
                Factor(
                    name="Trend Direction",
                    value=trend.state.slope,
                    contribution=0.0,
                    threshold=degradation_threshold,
                    description=f"{description} ({trend.sensor_type.value})",
                ),
            )
        )

    total_weight = sum(weight for _, _, weight, _ in raw)
    factors = [
        Factor(
            name=factor.name,
            value=factor.value,
            contribution=points / total_weight * 100.0,
            threshold=factor.threshold,
            unit=factor.unit,
            description=factor.description,
        )
        for _, points, _, factor in raw
    ]
    probability = min(100.0, sum(factor.contribution for factor in factors))
    confidence = failure_confidence(readings_count, recent_work_orders)
    assessment = assess(probability, confidence)
    days_until_failure = max(1, round(100.0 / max(probability, 1.0) * 30))

    return PredictionScore(
        asset_id=asset.asset_id,
        prediction_type=PredictionType.FAILURE,
        prediction_text=f"Failure probability: {probability:.1f}%",
        probability=round(probability, 2),
        confidence=assessment.confidence,
        low_confidence=assessment.low_confidence,
        risk_level=assessment.risk_level,
        factors=factors,
        recommended_action=recommendations.failure_action(assessment.risk_level),
        predicted_date=now + timedelta(days=days_until_failure),
        estimated_cost=recommendations.estimate_repair_cost(assessment.risk_level),
        potential_savings=recommendations.potential_savings(probability),
        model_id=model_id,
    )


def remaining_life_confidence(asset: AssetInfo) -> float:
    score = 30.0 if (asset.in_service_since or asset.operating_hours is not None) else 10.0
    score += 20.0 if asset.operating_hours is not None else 5.0
    score += 30.0
    score += 15.0 if asset.maintenance_count > 0 else 5.0
    return min(90.0, score)


def remaining_life_score(
    asset: AssetInfo,
    estimate: LifeEstimate,
    trend: Optional[StreamTrend],
    now: datetime,
    model_id: Optional[UUID] = None,
) -> PredictionScore:
    probability = min(100.0, max(0.0, estimate.failure_probability * 100.0))
    confidence = remaining_life_confidence(asset)
    assessment = assess(probability, confidence)
    remaining_days = estimate.remaining_life_days
    slope = trend.state.slope if trend is not None else 0.0
    hazard_per_1000h = estimate.hazard_rate * 1000.0

    values = (
        (
            estimate.age_hours / 24.0,
            "days",
            f"Asset has been operational for {estimate.age_hours / 24.0:.0f} days",
        ),
        (
            estimate.survival_probability * 100.0,
            "%",
            f"{estimate.survival_probability * 100.0:.1f}% probability of continued operation",
        ),
        (
            hazard_per_1000h if math.isfinite(hazard_per_1000h) else 0.0,
            "per 1000 h",
            f"Current failure hazard rate: {hazard_per_1000h:.4f}/1000 h",
        ),
        (
            slope,
            None,
            (
                f"{trend.sensor_type.value} trend is {trend.state.direction}"
                if trend is not None
                else "No trend data available"
            ),
        ),
    )
    factors = [
        Factor(name=name, value=value, contribution=share, unit=unit, description=text)
        for (name, share), (value, unit, text) in zip(_LIFE_FACTOR_SHARES, values)
    ]

    return PredictionScore(
        asset_id=asset.asset_id,
        prediction_type=PredictionType.REMAINING_LIFE,
        prediction_text=(
            f"Estimated remaining useful life: {remaining_days:.0f} days"
        ),
        probability=round(probability, 2),
        confidence=assessment.confidence,
        low_confidence=assessment.low_confidence,
        risk_level=assessment.risk_level,
        factors=factors,
        recommended_action=recommendations.remaining_life_action(remaining_days),
        predicted_date=now + timedelta(hours=estimate.remaining_life_hours),
        remaining_life_days=round(remaining_days, 2),
        estimated_cost=(
            asset.replacement_cost
            if asset.replacement_cost is not None
            else recommendations.DEFAULT_REPLACEMENT_COST
        ),
        model_id=model_id,
    )
