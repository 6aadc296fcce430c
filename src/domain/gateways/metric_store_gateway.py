"""
Domain Gateway - Metric Store

This module defines the gateway interface for reading asset telemetry from
the external metric store.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.domain.entities.context import RequestContext
from src.domain.entities.telemetry import Reading, SensorType


class IMetricStoreGateway(ABC):
    """Interface for the metric store gateway."""

    @abstractmethod
    async def fetch_readings(
        self,
        context: RequestContext,
        asset_id: str,
        sensor_type: SensorType,
        since: datetime,
    ) -> List[Reading]:
        """
        Fetch the readings of one asset sensor stream.

        Args:
            context: Tenant and actor of the call
            asset_id: Asset identifier
            sensor_type: Sensor stream to read
            since: Only readings taken at or after this instant

        Returns:
            Readings ordered by timestamp ascending

        Raises:
            MetricStoreError: When the metric store cannot be reached
        """
        pass

    @abstractmethod
    async def list_sensor_types(
        self, context: RequestContext, asset_id: str
    ) -> List[SensorType]:
        """
        List the sensor streams recorded for an asset.

        Raises:
            MetricStoreError: When the metric store cannot be reached
        """
        pass

    @abstractmethod
    async def list_monitored_assets(
        self, context: RequestContext, since: datetime
    ) -> List[str]:
        """
        List the assets of the tenant with readings at or after ``since``.

        Raises:
            MetricStoreError: When the metric store cannot be reached
        """
        pass
