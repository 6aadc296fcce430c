from __future__ import annotations

from datetime import timedelta

import pytest

from src.domain.entities.anomaly import DetectionMethod
from src.domain.entities.errors import InsufficientDataError, ModelConfigurationError
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType
from src.domain.services.anomaly_detector import (
    detect,
    iqr_bounds,
    scan,
    severity_for_z_score,
)

ALTERNATING = [10, 12, 10, 12, 10, 12]


def _stream(reading_factory, values):
    return reading_factory("pump-17", SensorType.VIBRATION, values, unit="mm/s")


def test_constant_baseline_falls_back_to_iqr(reading_factory) -> None:
    anomaly = detect(_stream(reading_factory, [10, 10, 10, 10, 10, 30]), window_size=5)

    assert anomaly is not None
    assert anomaly.method is DetectionMethod.IQR
    assert anomaly.severity is RiskLevel.CRITICAL
    assert anomaly.z_score is None
    assert anomaly.baseline_std_dev == 0.0
    assert anomaly.lower_bound == anomaly.upper_bound == 10.0
    assert anomaly.value == 30.0
    assert anomaly.unit == "mm/s"


def test_constant_baseline_with_matching_value_is_normal(reading_factory) -> None:
    assert detect(_stream(reading_factory, [10] * 6), window_size=5) is None


@pytest.mark.parametrize(
    "latest, expected",
    [
        (16.0, RiskLevel.CRITICAL),
        (14.5, RiskLevel.HIGH),
        (13.5, RiskLevel.MEDIUM),
        (12.0, None),
    ],
)
def test_z_score_severity_bands(reading_factory, latest, expected) -> None:
    anomaly = detect(_stream(reading_factory, ALTERNATING + [latest]), window_size=10)

    if expected is None:
        assert anomaly is None
    else:
        assert anomaly is not None
        assert anomaly.severity is expected
        assert anomaly.method is DetectionMethod.Z_SCORE
        assert anomaly.baseline_mean == pytest.approx(11.0)
        assert anomaly.baseline_size == 6


def test_low_outlier_is_reported_below_mean(reading_factory) -> None:
    anomaly = detect(_stream(reading_factory, ALTERNATING + [7.5]), window_size=10)

    assert anomaly is not None
    assert anomaly.z_score < 0
    assert "below" in anomaly.message


def test_window_excludes_older_readings(reading_factory) -> None:
    values = [1000] + ALTERNATING + [16]

    anomaly = detect(_stream(reading_factory, values), window_size=6)

    assert anomaly is not None
    assert anomaly.baseline_size == 6
    assert anomaly.severity is RiskLevel.CRITICAL


def test_short_baseline_raises_insufficient_data(reading_factory) -> None:
    with pytest.raises(InsufficientDataError) as exc:
        detect(_stream(reading_factory, [10, 11, 12, 13, 14]), window_size=10)

    assert exc.value.required == 5
    assert exc.value.available == 4


def test_empty_stream_raises_insufficient_data() -> None:
    with pytest.raises(InsufficientDataError):
        detect([], window_size=10)


@pytest.mark.parametrize(
    "window_size, multiplier", [(4, 1.5), (10, 0.0), (10, -1.0)]
)
def test_unusable_configuration_is_rejected(reading_factory, window_size, multiplier) -> None:
    with pytest.raises(ModelConfigurationError):
        detect(_stream(reading_factory, ALTERNATING), window_size, multiplier)


def test_severity_for_z_score_uses_magnitude() -> None:
    assert severity_for_z_score(-4.0) is RiskLevel.CRITICAL
    assert severity_for_z_score(3.99) is RiskLevel.HIGH
    assert severity_for_z_score(2.0) is RiskLevel.MEDIUM
    assert severity_for_z_score(1.99) is None


def test_iqr_bounds_are_tukey_fences() -> None:
    lower, upper = iqr_bounds([1, 2, 3, 4, 5], 1.5)

    assert lower == pytest.approx(-1.0)
    assert upper == pytest.approx(7.0)


def test_scan_flags_spike_followed_by_normal_readings(reading_factory) -> None:
    readings = _stream(reading_factory, [10, 10, 10, 10, 10, 30, 10, 10])

    assert detect(readings, window_size=5) is None
    anomalies = scan(readings, window_size=5)

    assert [anomaly.value for anomaly in anomalies] == [30.0]
    assert anomalies[0].timestamp == readings[5].timestamp


def test_scan_judges_each_reading_against_its_own_window(reading_factory) -> None:
    readings = _stream(reading_factory, [10, 10, 10, 10, 10, 30, 10, 10, 10, 10, 10])

    # After the spike the baseline is no longer constant, so later tens are normal.
    assert [anomaly.value for anomaly in scan(readings, window_size=5)] == [30.0]


def test_scan_ignores_readings_before_since(reading_factory) -> None:
    readings = _stream(reading_factory, [10, 10, 10, 10, 10, 30, 10, 10, 10, 40])

    recent = scan(readings, window_size=5, since=readings[7].timestamp)
    everything = scan(readings, window_size=5)

    assert [anomaly.value for anomaly in recent] == [40.0]
    assert [anomaly.value for anomaly in everything] == [30.0, 40.0]


def test_scan_with_nothing_in_range_is_empty(reading_factory) -> None:
    readings = _stream(reading_factory, [10, 10, 10, 10, 10, 30])

    assert scan(readings, 5, since=readings[-1].timestamp + timedelta(minutes=1)) == []


def test_scan_requires_a_baseline(reading_factory) -> None:
    with pytest.raises(InsufficientDataError):
        scan(_stream(reading_factory, [10, 10, 10, 10, 30]), window_size=5)
    with pytest.raises(ModelConfigurationError):
        scan(_stream(reading_factory, [10] * 8), window_size=3)
