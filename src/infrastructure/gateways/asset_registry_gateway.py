"""Asset registry gateway implementation - Infrastructure layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext
from src.domain.entities.errors import AssetNotFoundError, AssetRegistryError
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.shared import ACTOR_HEADER, TENANT_HEADER, get_logger

logger = get_logger(__name__)


def _parse_datetime(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("asset_registry.datetime_parse_failed", value=raw)
        return None


def _parse_float(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


class AssetRegistryGateway(IAssetRegistryGateway):
    """HTTP client for the asset registry API."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def resolve(self, context: RequestContext, asset_id: str) -> AssetInfo:
        url = f"{self.base_url}/assets/{quote(asset_id, safe='')}"
        try:
            payload = await self._get(context, url)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise AssetNotFoundError(asset_id) from e
            raise self._status_error(e, url) from e
        return self._to_domain(payload)

    async def list_by_type(
        self, context: RequestContext, asset_type: str
    ) -> List[AssetInfo]:
        url = f"{self.base_url}/assets"
        try:
            payload = await self._get(context, url, {"type": asset_type})
        except httpx.HTTPStatusError as e:
            raise self._status_error(e, url) from e

        items = payload.get("assets", []) if isinstance(payload, dict) else payload
        return [self._to_domain(item) for item in items or []]

    async def _get(
        self,
        context: RequestContext,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {
            TENANT_HEADER: context.tenant_id,
            ACTOR_HEADER: context.actor_id,
            "Accept": "application/json",
        }
        logger.debug("asset_registry.request", url=url, params=params)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.RequestError as e:
            logger.error("asset_registry.request_error", error=str(e), url=url)
            raise AssetRegistryError(f"Asset registry request failed: {str(e)}") from e
        except ValueError as e:
            raise AssetRegistryError(
                f"Asset registry returned invalid JSON: {e}"
            ) from e

    def _status_error(self, exc: httpx.HTTPStatusError, url: str) -> AssetRegistryError:
        logger.error(
            "asset_registry.http_error",
            status_code=exc.response.status_code,
            response_text=exc.response.text,
            url=url,
        )
        return AssetRegistryError(
            f"Asset registry HTTP error {exc.response.status_code}",
            {"status_code": exc.response.status_code},
        )

    def _to_domain(self, payload: Dict[str, Any]) -> AssetInfo:
        if not isinstance(payload, dict) or not payload.get("id"):
            raise AssetRegistryError(
                "Asset registry returned an asset without id", {"payload": payload}
            )
        criticality = payload.get("criticality")
        return AssetInfo(
            asset_id=str(payload["id"]),
            name=payload.get("name") or str(payload["id"]),
            asset_type=payload.get("type") or "",
            tag=payload.get("assetTag"),
            criticality=int(criticality) if criticality is not None else 3,
            in_service_since=_parse_datetime(
                payload.get("inServiceSince") or payload.get("installDate")
            ),
            operating_hours=_parse_float(payload.get("operatingHours")),
            last_maintenance_at=_parse_datetime(payload.get("lastMaintenanceDate")),
            maintenance_count=int(payload.get("maintenanceCount") or 0),
            replacement_cost=_parse_float(payload.get("replacementCost")),
        )
