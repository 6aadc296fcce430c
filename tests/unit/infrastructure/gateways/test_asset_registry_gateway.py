from __future__ import annotations

import httpx
import pytest

from src.domain.entities.errors import AssetNotFoundError, AssetRegistryError
from src.infrastructure.gateways.asset_registry_gateway import AssetRegistryGateway

ASSET_PAYLOAD = {
    "id": "pump-17",
    "name": "Cooling pump 17",
    "type": "pump",
    "assetTag": "CP-17",
    "criticality": 5,
    "installDate": "2021-03-01T00:00:00Z",
    "operatingHours": "15320.5",
    "lastMaintenanceDate": "2024-04-02T08:00:00Z",
    "maintenanceCount": 7,
    "replacementCost": 18500,
}


@pytest.mark.asyncio
async def test_resolve_maps_payload(http_requests, context) -> None:
    requests = http_requests(lambda request: httpx.Response(200, json=ASSET_PAYLOAD))
    gateway = AssetRegistryGateway("http://assets")

    asset = await gateway.resolve(context, "pump-17")

    assert asset.asset_id == "pump-17"
    assert asset.name == "Cooling pump 17"
    assert asset.tag == "CP-17"
    assert asset.criticality == 5
    assert asset.operating_hours == 15320.5
    assert asset.in_service_since is not None
    assert asset.in_service_since.year == 2021
    assert asset.last_maintenance_at is not None
    assert asset.maintenance_count == 7
    assert asset.replacement_cost == 18500.0
    assert requests[0].url.path == "/assets/pump-17"
    assert requests[0].headers["X-Tenant-Id"] == "tenant-a"


@pytest.mark.asyncio
async def test_resolve_defaults_missing_fields(http_requests, context) -> None:
    http_requests(
        lambda request: httpx.Response(
            200, json={"id": "fan-2", "lastMaintenanceDate": "yesterday"}
        )
    )
    gateway = AssetRegistryGateway("http://assets")

    asset = await gateway.resolve(context, "fan-2")

    assert asset.name == "fan-2"
    assert asset.criticality == 3
    assert asset.last_maintenance_at is None
    assert asset.replacement_cost is None


@pytest.mark.asyncio
async def test_resolve_unknown_asset(http_requests, context) -> None:
    http_requests(lambda request: httpx.Response(404, json={"error": "missing"}))
    gateway = AssetRegistryGateway("http://assets")

    with pytest.raises(AssetNotFoundError):
        await gateway.resolve(context, "ghost")


@pytest.mark.asyncio
async def test_resolve_server_error(http_requests, context) -> None:
    http_requests(lambda request: httpx.Response(500, text="boom"))
    gateway = AssetRegistryGateway("http://assets")

    with pytest.raises(AssetRegistryError) as exc_info:
        await gateway.resolve(context, "pump-17")

    assert not isinstance(exc_info.value, AssetNotFoundError)
    assert exc_info.value.details == {"status_code": 500}


@pytest.mark.asyncio
async def test_list_by_type_accepts_wrapped_and_bare_lists(
    http_requests, context
) -> None:
    responses = iter(
        [
            httpx.Response(200, json={"assets": [ASSET_PAYLOAD]}),
            httpx.Response(200, json=[ASSET_PAYLOAD, {"id": "pump-18"}]),
        ]
    )
    requests = http_requests(lambda request: next(responses))
    gateway = AssetRegistryGateway("http://assets")

    wrapped = await gateway.list_by_type(context, "pump")
    bare = await gateway.list_by_type(context, "pump")

    assert [asset.asset_id for asset in wrapped] == ["pump-17"]
    assert [asset.asset_id for asset in bare] == ["pump-17", "pump-18"]
    assert requests[0].url.params["type"] == "pump"


@pytest.mark.asyncio
async def test_asset_without_id_is_rejected(http_requests, context) -> None:
    http_requests(lambda request: httpx.Response(200, json={"name": "nameless"}))
    gateway = AssetRegistryGateway("http://assets")

    with pytest.raises(AssetRegistryError, match="without id"):
        await gateway.resolve(context, "pump-17")
