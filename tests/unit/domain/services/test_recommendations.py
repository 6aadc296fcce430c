from __future__ import annotations

import pytest

from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType
from src.domain.services import recommendations


def test_sensor_specific_action() -> None:
    action = recommendations.recommended_action(RiskLevel.CRITICAL, SensorType.VIBRATION)

    assert "bearings" in action


def test_action_falls_back_to_level_default() -> None:
    assert recommendations.recommended_action(RiskLevel.LOW, SensorType.VIBRATION).startswith(
        "Continue monitoring"
    )
    assert recommendations.recommended_action(RiskLevel.HIGH) == (
        "Schedule maintenance within 48 hours."
    )


@pytest.mark.parametrize(
    "days, expected",
    [(10, "replacement within the next month"), (60, "procurement"), (200, "regular maintenance")],
)
def test_remaining_life_action(days, expected) -> None:
    assert expected in recommendations.remaining_life_action(days)


def test_cost_policy() -> None:
    assert recommendations.estimate_repair_cost(RiskLevel.CRITICAL) == 5000.0
    assert recommendations.estimate_repair_cost(RiskLevel.LOW) == 250.0
    assert recommendations.potential_savings(50.0) == 2500.0
    assert recommendations.potential_savings(33.333) == 1666.65


def test_work_order_priority_mirrors_risk() -> None:
    assert recommendations.work_order_priority(RiskLevel.HIGH) == "high"


def test_data_confidence_grows_with_sample_size() -> None:
    assert recommendations.data_confidence(30) == 85.0
    assert recommendations.data_confidence(500) == 85.0
    assert recommendations.data_confidence(10) == 28.0
    assert recommendations.data_confidence(0) == 0.0
