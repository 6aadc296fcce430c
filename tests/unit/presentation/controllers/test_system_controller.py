from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi import HTTPException, Request, Response

from src.application.models import SystemInfo
from src.application.use_cases.health_use_cases import (
    GetApplicationInfoUseCase,
    GetHealthStatusUseCase,
)
from src.domain.entities.health import DependencyStatus, ServiceStatus, SystemHealth
from src.presentation.controllers.system_controller import health, info


class _HealthService:
    def __init__(self, status: ServiceStatus):
        self._health = SystemHealth(
            status=status,
            dependencies=[DependencyStatus(name="mongo", status=status)],
        )

    async def evaluate(self) -> SystemHealth:
        return self._health


class _BrokenHealthService:
    async def evaluate(self) -> SystemHealth:
        raise RuntimeError("probe crashed")


def _system_info() -> SystemInfo:
    return SystemInfo(
        title="Predictive Maintenance Engine",
        description="desc",
        version="1.0",
        environment="development",
        git_commit="abc",
        build_time="now",
        celery_broker_url="amqp://",
        celery_result_backend_url="redis://",
        metric_store_url="http://metrics",
        work_order_url="http://work-orders",
        asset_registry_url="http://assets",
    )


@pytest.mark.asyncio
async def test_health_endpoint_returns_status():
    response = Response()

    dto = await health(
        response=response,
        get_health_status_use_case=GetHealthStatusUseCase(
            _HealthService(ServiceStatus.UP)
        ),
    )

    assert dto.status is ServiceStatus.UP
    assert dto.dependencies[0].name == "mongo"
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health_endpoint_answers_503_when_down():
    response = Response()

    dto = await health(
        response=response,
        get_health_status_use_case=GetHealthStatusUseCase(
            _HealthService(ServiceStatus.DOWN)
        ),
    )

    assert dto.status is ServiceStatus.DOWN
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_health_endpoint_failure_is_unavailable():
    with pytest.raises(HTTPException) as exc_info:
        await health(
            response=Response(),
            get_health_status_use_case=GetHealthStatusUseCase(_BrokenHealthService()),
        )

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_info_endpoint_returns_application_info():
    info_use_case = GetApplicationInfoUseCase(
        _HealthService(ServiceStatus.UP), _system_info()
    )
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/info",
        "headers": [],
        "query_string": b"",
        "server": ("test", 80),
        "app": SimpleNamespace(
            state=SimpleNamespace(started_at=datetime.now(timezone.utc))
        ),
    }

    dto = await info(request=Request(scope), get_application_info_use_case=info_use_case)

    assert dto.name == "Predictive Maintenance Engine"
    assert dto.status is ServiceStatus.UP
    assert dto.extras["collaborators"]["metric_store_url"] == "http://metrics"
