"""
Domain Entities - Asset

Read-only view of an asset as resolved from the asset registry.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class AssetInfo:
    """Display and condition data for an asset owned by the asset registry."""

    asset_id: str
    name: str
    asset_type: str
    tag: Optional[str] = None
    criticality: int = 3
    in_service_since: Optional[datetime] = None
    operating_hours: Optional[float] = None
    last_maintenance_at: Optional[datetime] = None
    maintenance_count: int = 0
    replacement_cost: Optional[float] = None

    def age_in_service_hours(self, now: Optional[datetime] = None) -> Optional[float]:
        """
        Age used by the remaining-life estimator.

        Metered operating hours win over calendar age; None when neither is known.
        """
        if self.operating_hours is not None:
            return max(0.0, float(self.operating_hours))
        if self.in_service_since is None:
            return None
        reference = now or datetime.now(timezone.utc)
        elapsed = reference - self.in_service_since
        return max(0.0, elapsed.total_seconds() / 3600.0)

    def days_since_maintenance(self, now: Optional[datetime] = None) -> Optional[int]:
        if self.last_maintenance_at is None:
            return None
        reference = now or datetime.now(timezone.utc)
        return max(0, (reference - self.last_maintenance_at).days)
