"""
Domain Entities - Telemetry

Readings supplied by the metric store for a single asset sensor stream.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SensorType(str, Enum):
    """Kind of signal a reading was sampled from."""

    TEMPERATURE = "temperature"
    VIBRATION = "vibration"
    PRESSURE = "pressure"
    CURRENT = "current"
    VOLTAGE = "voltage"
    HUMIDITY = "humidity"
    FLOW_RATE = "flow_rate"
    RPM = "rpm"
    POWER = "power"
    OIL_LEVEL = "oil_level"
    OIL_QUALITY = "oil_quality"
    NOISE_LEVEL = "noise_level"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Reading:
    """A single immutable sensor or meter reading."""

    asset_id: str
    sensor_type: SensorType
    value: float
    timestamp: datetime
    unit: Optional[str] = None

    @property
    def stream_key(self) -> str:
        return f"{self.asset_id}:{self.sensor_type.value}"
