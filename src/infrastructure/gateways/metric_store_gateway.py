"""
Infrastructure Gateway - Metric Store Implementation

This module implements the metric store gateway that reads asset telemetry
over HTTP.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from src.domain.entities.context import RequestContext
from src.domain.entities.errors import MetricStoreError
from src.domain.entities.telemetry import Reading, SensorType
from src.domain.gateways.metric_store_gateway import IMetricStoreGateway
from src.shared import ACTOR_HEADER, TENANT_HEADER, get_logger

logger = get_logger(__name__)


class MetricStoreGateway(IMetricStoreGateway):
    """Implementation of the metric store gateway using an HTTP client."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        """
        Initialize the metric store gateway.

        Args:
            base_url: Base URL of the metric store (e.g., "http://metrics:8080")
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self, context: RequestContext) -> Dict[str, str]:
        return {
            TENANT_HEADER: context.tenant_id,
            ACTOR_HEADER: context.actor_id,
            "Accept": "application/json",
        }

    async def _get(
        self,
        context: RequestContext,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    url, params=params, headers=self._headers(context)
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "metric_store.http_error",
                status_code=e.response.status_code,
                url=url,
                tenant_id=context.tenant_id,
            )
            raise MetricStoreError(
                f"Metric store HTTP error {e.response.status_code}",
                {"url": url, "status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            logger.error("metric_store.request_error", error=str(e), url=url)
            raise MetricStoreError(f"Metric store request failed: {str(e)}") from e
        except ValueError as e:
            logger.error("metric_store.invalid_payload", error=str(e), url=url)
            raise MetricStoreError(f"Metric store returned invalid JSON: {e}") from e

    async def fetch_readings(
        self,
        context: RequestContext,
        asset_id: str,
        sensor_type: SensorType,
        since: datetime,
    ) -> List[Reading]:
        url = f"{self.base_url}/assets/{quote(asset_id, safe='')}/readings"
        params = {"sensorType": sensor_type.value, "since": since.isoformat()}

        logger.debug(
            "metric_store.readings.request",
            asset_id=asset_id,
            sensor_type=sensor_type.value,
            since=since.isoformat(),
        )
        payload = await self._get(context, url, params)
        readings = self._parse_readings(asset_id, sensor_type, payload)
        readings.sort(key=lambda reading: reading.timestamp)
        logger.debug(
            "metric_store.readings.response",
            asset_id=asset_id,
            sensor_type=sensor_type.value,
            count=len(readings),
        )
        return readings

    async def list_sensor_types(
        self, context: RequestContext, asset_id: str
    ) -> List[SensorType]:
        url = f"{self.base_url}/assets/{quote(asset_id, safe='')}/sensors"
        payload = await self._get(context, url)

        sensor_types: List[SensorType] = []
        for raw in payload.get("sensorTypes", []):
            try:
                sensor_types.append(SensorType(raw))
            except ValueError:
                logger.warning(
                    "metric_store.unknown_sensor_type",
                    asset_id=asset_id,
                    sensor_type=raw,
                )
        return sensor_types

    async def list_monitored_assets(
        self, context: RequestContext, since: datetime
    ) -> List[str]:
        url = f"{self.base_url}/assets/monitored"
        payload = await self._get(context, url, {"since": since.isoformat()})
        return [str(asset_id) for asset_id in payload.get("assetIds", [])]

    def _parse_readings(
        self, asset_id: str, sensor_type: SensorType, payload: Dict[str, Any]
    ) -> List[Reading]:
        readings: List[Reading] = []
        for entry in payload.get("readings", []):
            raw_timestamp = entry.get("timestamp")
            raw_value = entry.get("value")
            if raw_timestamp is None or raw_value is None:
                logger.warning("metric_store.reading_incomplete", entry=entry)
                continue
            try:
                timestamp = datetime.fromisoformat(
                    str(raw_timestamp).replace("Z", "+00:00")
                )
                value = float(raw_value)
            except (TypeError, ValueError):
                logger.warning(
                    "metric_store.reading_parse_failed",
                    asset_id=asset_id,
                    entry=entry,
                )
                continue
            readings.append(
                Reading(
                    asset_id=asset_id,
                    sensor_type=sensor_type,
                    value=value,
                    timestamp=timestamp,
                    unit=entry.get("unit"),
                )
            )
        return readings
