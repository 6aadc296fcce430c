"""Recommended actions, cost policy and work-order priority per risk level."""

from typing import Dict, Optional

from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType

_DEFAULT = "default"

_ACTIONS: Dict[RiskLevel, Dict[str, str]] = {
    RiskLevel.CRITICAL: {
        SensorType.TEMPERATURE.value: (
            "Immediate shutdown and inspection required. "
            "Check cooling system and thermal overload protection."
        ),
        SensorType.VIBRATION.value: (
            "Stop equipment immediately. Inspect bearings, alignment, and mounting."
        ),
        SensorType.PRESSURE.value: (
            "Emergency pressure relief required. "
            "Check for blockages and valve functionality."
        ),
        SensorType.CURRENT.value: (
            "Disconnect and inspect electrical connections. Check for short circuits."
        ),
        _DEFAULT: "Stop operation and perform immediate inspection.",
    },
    RiskLevel.HIGH: {
        SensorType.TEMPERATURE.value: (
            "Schedule urgent maintenance. "
            "Monitor continuously and reduce load if possible."
        ),
        SensorType.VIBRATION.value: (
            "Schedule bearing inspection within 48 hours. Reduce operating speed."
        ),
        SensorType.PRESSURE.value: (
            "Check pressure relief valves and seals. Monitor closely."
        ),
        SensorType.CURRENT.value: (
            "Check electrical load and connections. Consider load reduction."
        ),
        _DEFAULT: "Schedule maintenance within 48 hours.",
    },
    RiskLevel.MEDIUM: {
        SensorType.TEMPERATURE.value: (
            "Schedule inspection during next maintenance window. "
            "Check cooling efficiency."
        ),
        SensorType.VIBRATION.value: (
            "Add to next preventive maintenance cycle. Monitor trend."
        ),
        SensorType.PRESSURE.value: "Verify calibration and check for minor leaks.",
        SensorType.CURRENT.value: "Review electrical load distribution.",
        _DEFAULT: "Include in next scheduled maintenance.",
    },
    RiskLevel.LOW: {
        _DEFAULT: "Continue monitoring. No immediate action required.",
    },
}

_FAILURE_ACTIONS: Dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: (
        "Schedule emergency maintenance immediately. "
        "High failure probability detected."
    ),
    RiskLevel.HIGH: (
        "Plan maintenance within the next 7 days. "
        "Significant failure indicators present."
    ),
    RiskLevel.MEDIUM: (
        "Include in next preventive maintenance cycle. Monitor trends closely."
    ),
    RiskLevel.LOW: "Continue regular monitoring. No immediate action required.",
}

REPAIR_COSTS: Dict[RiskLevel, float] = {
    RiskLevel.CRITICAL: 5000.0,
    RiskLevel.HIGH: 2500.0,
    RiskLevel.MEDIUM: 1000.0,
    RiskLevel.LOW: 250.0,
}

DEFAULT_REPLACEMENT_COST = 10000.0

WORK_ORDER_PRIORITIES: Dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "critical",
    RiskLevel.HIGH: "high",
    RiskLevel.MEDIUM: "medium",
    RiskLevel.LOW: "low",
}


def recommended_action(
    risk_level: RiskLevel, sensor_type: Optional[SensorType] = None
) -> str:
    """Sensor-specific advice, falling back to the level default."""
    actions = _ACTIONS[risk_level]
    if sensor_type is not None and sensor_type.value in actions:
        return actions[sensor_type.value]
    return actions[_DEFAULT]


def failure_action(risk_level: RiskLevel) -> str:
    return _FAILURE_ACTIONS[risk_level]


def remaining_life_action(remaining_life_days: float) -> str:
    if remaining_life_days < 30:
        return "Plan for asset replacement within the next month"
    if remaining_life_days < 90:
        return "Begin procurement process for replacement parts or equipment"
    return "Continue regular maintenance and monitoring"


def estimate_repair_cost(risk_level: RiskLevel) -> float:
    return REPAIR_COSTS[risk_level]


def potential_savings(probability: float) -> float:
    """Expected avoided cost of a critical failure at the given probability."""
    return round(REPAIR_COSTS[RiskLevel.CRITICAL] * probability / 100.0, 2)


def work_order_priority(risk_level: RiskLevel) -> str:
    return WORK_ORDER_PRIORITIES[risk_level]


def data_confidence(sample_size: int) -> float:
    """Confidence earned from the amount of data behind a statistic."""
    if sample_size >= 30:
        return 85.0
    return min(85.0, round(sample_size * 2.8, 2))
