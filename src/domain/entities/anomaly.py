"""
Domain Entities - Anomaly

An outlier reading flagged by the anomaly detector. Anomalies are read-only
once recorded.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from .risk import RiskLevel
from .telemetry import SensorType


def reading_instant(timestamp: datetime) -> datetime:
    """
    Timestamp of a reading as MongoDB keeps it: UTC, millisecond precision.

    Anomalies are unique per reading, so timestamps coming back from storage
    and timestamps coming from the metric store must compare equal.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    else:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.replace(microsecond=timestamp.microsecond // 1000 * 1000)


class DetectionMethod(str, Enum):
    """Statistical test that flagged the reading."""

    Z_SCORE = "z_score"
    IQR = "iqr"


@dataclass(frozen=True)
class Anomaly:
    """Outlier reading with the baseline statistics it was judged against."""

    asset_id: str
    sensor_type: SensorType
    value: float
    severity: RiskLevel
    method: DetectionMethod
    timestamp: datetime
    baseline_mean: float
    baseline_std_dev: float
    baseline_size: int
    z_score: Optional[float] = None
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    unit: Optional[str] = None
    message: Optional[str] = None
    tenant_id: str = ""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def deviation(self) -> float:
        """Magnitude used to rank anomalies of the same severity."""
        if self.z_score is None:
            return float("inf")
        return abs(self.z_score)

    def for_tenant(self, tenant_id: str) -> "Anomaly":
        return replace(self, tenant_id=tenant_id)
