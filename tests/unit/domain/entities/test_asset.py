from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_operating_hours_take_precedence() -> None:
    asset = AssetInfo(
        asset_id="a",
        name="A",
        asset_type="pump",
        in_service_since=NOW - timedelta(days=10),
        operating_hours=1200.0,
    )
    assert asset.age_in_service_hours(NOW) == 1200.0


def test_calendar_age_in_hours() -> None:
    asset = AssetInfo(
        asset_id="a", name="A", asset_type="pump", in_service_since=NOW - timedelta(days=2)
    )
    assert asset.age_in_service_hours(NOW) == pytest.approx(48.0)


def test_unknown_age() -> None:
    asset = AssetInfo(asset_id="a", name="A", asset_type="pump")
    assert asset.age_in_service_hours(NOW) is None
    assert asset.days_since_maintenance(NOW) is None


def test_days_since_maintenance() -> None:
    asset = AssetInfo(
        asset_id="a",
        name="A",
        asset_type="pump",
        last_maintenance_at=NOW - timedelta(days=12, hours=5),
    )
    assert asset.days_since_maintenance(NOW) == 12


def test_request_context_requires_tenant_and_actor() -> None:
    with pytest.raises(ValueError):
        RequestContext(tenant_id="", actor_id="user-1")
    with pytest.raises(ValueError):
        RequestContext(tenant_id="tenant-a", actor_id="")


def test_scheduler_context() -> None:
    context = RequestContext.for_scheduler("tenant-a")
    assert context.actor_id == "system:scheduler"
