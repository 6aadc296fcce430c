"""
Anomaly Detector - Domain Service

Flags the newest reading of a sensor stream as an outlier when it deviates
from the rolling baseline formed by the readings that precede it.

Severity policy:

    |z| >= 4  -> critical
    |z| >= 3  -> high
    |z| >= 2  -> medium
    |z| <  2  -> not anomalous

A constant baseline (sigma == 0) switches to the IQR fence test; a reading
outside ``[Q1 - k*IQR, Q3 + k*IQR]`` is then reported as critical.

``scan`` applies the same test to every reading of a time range, each against
its own preceding window, so that a scoring run sees every reading that
arrived since the previous one.
"""

from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from src.domain.entities.anomaly import Anomaly, DetectionMethod
from src.domain.entities.errors import InsufficientDataError, ModelConfigurationError
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import Reading

MIN_BASELINE_READINGS = 5
DEFAULT_IQR_MULTIPLIER = 1.5

_SEVERITY_THRESHOLDS = (
    (4.0, RiskLevel.CRITICAL),
    (3.0, RiskLevel.HIGH),
    (2.0, RiskLevel.MEDIUM),
)


def severity_for_z_score(z_score: float) -> Optional[RiskLevel]:
    """Map a z-score to an anomaly severity, None below the reporting floor."""
    magnitude = abs(z_score)
    for threshold, severity in _SEVERITY_THRESHOLDS:
        if magnitude >= threshold:
            return severity
    return None


def iqr_bounds(values: Sequence[float], multiplier: float) -> tuple[float, float]:
    """Tukey fences for ``values``."""
    q1, q3 = np.percentile(np.asarray(values, dtype=float), [25, 75])
    iqr = q3 - q1
    return float(q1 - multiplier * iqr), float(q3 + multiplier * iqr)


def _check_parameters(window_size: int, iqr_multiplier: float) -> None:
    if window_size < MIN_BASELINE_READINGS:
        raise ModelConfigurationError(
            f"Anomaly window must hold at least {MIN_BASELINE_READINGS} readings",
            {"window_size": window_size},
        )
    if iqr_multiplier <= 0:
        raise ModelConfigurationError(
            "IQR multiplier must be positive", {"iqr_multiplier": iqr_multiplier}
        )


def detect(
    readings: Sequence[Reading],
    window_size: int,
    iqr_multiplier: float = DEFAULT_IQR_MULTIPLIER,
) -> Optional[Anomaly]:
    """
    Judge the newest reading of a single asset/sensor stream.

    Args:
        readings: Time-ordered readings for one asset and sensor type.
        window_size: Number of readings preceding the newest one that form
            the baseline.
        iqr_multiplier: Fence width used by the constant-baseline fallback.

    Returns:
        The anomaly for the newest reading, or None when it is within range.

    Raises:
        ModelConfigurationError: If the window or multiplier is unusable.
        InsufficientDataError: If fewer than five baseline readings exist.
    """
    _check_parameters(window_size, iqr_multiplier)
    if not readings:
        raise InsufficientDataError(MIN_BASELINE_READINGS + 1, 0)

    latest = readings[-1]
    baseline_readings = readings[:-1][-window_size:]
    if len(baseline_readings) < MIN_BASELINE_READINGS:
        raise InsufficientDataError(MIN_BASELINE_READINGS, len(baseline_readings))

    baseline = np.asarray([r.value for r in baseline_readings], dtype=float)
    mean = float(baseline.mean())
    # Identical values can leave float residue in the mean; treat them as sigma 0.
    if np.ptp(baseline) == 0.0:
        mean = float(baseline[0])
        std_dev = 0.0
    else:
        std_dev = float(baseline.std(ddof=1))

    if std_dev == 0.0:
        lower, upper = iqr_bounds(baseline, iqr_multiplier)
        if lower <= latest.value <= upper:
            return None
        return Anomaly(
            asset_id=latest.asset_id,
            sensor_type=latest.sensor_type,
            value=latest.value,
            unit=latest.unit,
            severity=RiskLevel.CRITICAL,
            method=DetectionMethod.IQR,
            timestamp=latest.timestamp,
            baseline_mean=mean,
            baseline_std_dev=std_dev,
            baseline_size=len(baseline),
            lower_bound=lower,
            upper_bound=upper,
            message=(
                f"{latest.sensor_type.value} reading {latest.value:g} outside "
                f"constant baseline range [{lower:g}, {upper:g}]"
            ),
        )

    z_score = (latest.value - mean) / std_dev
    severity = severity_for_z_score(z_score)
    if severity is None:
        return None

    direction = "above" if z_score > 0 else "below"
    return Anomaly(
        asset_id=latest.asset_id,
        sensor_type=latest.sensor_type,
        value=latest.value,
        unit=latest.unit,
        severity=severity,
        method=DetectionMethod.Z_SCORE,
        timestamp=latest.timestamp,
        baseline_mean=mean,
        baseline_std_dev=std_dev,
        baseline_size=len(baseline),
        z_score=float(z_score),
        message=(
            f"{latest.sensor_type.value} reading {latest.value:g} is "
            f"{abs(z_score):.2f} standard deviations {direction} the mean"
        ),
    )


def scan(
    readings: Sequence[Reading],
    window_size: int,
    iqr_multiplier: float = DEFAULT_IQR_MULTIPLIER,
    since: Optional[datetime] = None,
) -> List[Anomaly]:
    """
    Judge every reading at or after ``since`` as ``detect`` would on arrival.

    Each reading is compared with the ``window_size`` readings preceding it,
    so a spike followed by normal readings is still reported. Readings with
    too short a history are skipped. An empty list means no reading in range
    is anomalous.

    Raises:
        ModelConfigurationError: If the window or multiplier is unusable.
        InsufficientDataError: If the stream is too short for any baseline.
    """
    _check_parameters(window_size, iqr_multiplier)
    if len(readings) <= MIN_BASELINE_READINGS:
        raise InsufficientDataError(MIN_BASELINE_READINGS, max(len(readings) - 1, 0))

    anomalies: List[Anomaly] = []
    for index in range(MIN_BASELINE_READINGS, len(readings)):
        if since is not None and readings[index].timestamp < since:
            continue
        window = readings[max(index - window_size, 0) : index + 1]
        anomaly = detect(window, window_size, iqr_multiplier)
        if anomaly is not None:
            anomalies.append(anomaly)
    return anomalies
