"""Anomaly Repository Interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Set

from src.domain.entities.anomaly import Anomaly
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType


class IAnomalyRepository(ABC):
    """Append-only store of detected anomalies, at most one per reading."""

    @abstractmethod
    async def add(self, anomaly: Anomaly) -> Anomaly:
        """
        Record a detected anomaly.

        Raises:
            DuplicateAnomalyError: If the reading already has an anomaly
            ModelOperationError: If the insert fails
        """
        pass

    @abstractmethod
    async def find_recent(
        self,
        tenant_id: str,
        limit: int = 50,
        asset_id: Optional[str] = None,
        severity: Optional[RiskLevel] = None,
    ) -> List[Anomaly]:
        """
        Most recent anomalies of a tenant, descending by reading timestamp.

        Args:
            tenant_id: Tenant owning the anomalies
            limit: Maximum number of anomalies to return
            asset_id: Filter by asset
            severity: Filter by severity
        """
        pass

    @abstractmethod
    async def count(
        self,
        tenant_id: str,
        asset_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        """Count anomalies recorded at or after ``since``."""
        pass

    @abstractmethod
    async def recorded_timestamps(
        self,
        tenant_id: str,
        asset_id: str,
        sensor_type: SensorType,
        since: datetime,
    ) -> Set[datetime]:
        """
        Reading timestamps of one stream that already have an anomaly.

        Timestamps are normalized with ``reading_instant`` so they can be
        compared with readings fetched from the metric store.
        """
        pass
