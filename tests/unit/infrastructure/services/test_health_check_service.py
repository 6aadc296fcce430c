from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace
from typing import cast
from unittest.mock import AsyncMock

import httpx
import pytest

from src.domain.entities.health import DependencyStatus, ServiceStatus
from src.infrastructure.database.mongo_database import MongoDatabase
from src.infrastructure.services.health_check_service import HealthCheckService


@dataclass
class _StubMongoClient:
    class _Admin:
        @staticmethod
        def command(cmd: str) -> None:
            if cmd != "ping":
                raise ValueError("Unexpected command")

    @property
    def admin(self) -> "_StubMongoClient._Admin":
        return self._Admin()


@dataclass
class _StubMongoDatabase:
    name: str = "predictive_db"

    def __post_init__(self) -> None:
        self.client = _StubMongoClient()
        self.db = SimpleNamespace(name=self.name)

    def close(self) -> None:
        pass


def _make_service(**overrides) -> HealthCheckService:
    params = dict(
        mongo_database=cast(MongoDatabase, _StubMongoDatabase()),
        broker_url="amqp://guest@localhost/",
        redis_url="redis://localhost/0",
        metric_store_url="http://metrics",
        work_order_url="http://work-orders",
        asset_registry_url="http://assets",
    )
    params.update(overrides)
    return HealthCheckService(**params)


def _stub_core_probes(monkeypatch, service, mongo, rabbit, redis) -> None:
    monkeypatch.setattr(
        service, "_check_mongo", AsyncMock(return_value=DependencyStatus("mongo", mongo))
    )
    monkeypatch.setattr(
        service,
        "_check_rabbitmq",
        AsyncMock(return_value=DependencyStatus("rabbitmq", rabbit)),
    )
    monkeypatch.setattr(
        service, "_check_redis", AsyncMock(return_value=DependencyStatus("redis", redis))
    )


def test_aggregate_status_priority() -> None:
    service = _make_service()
    statuses = [
        DependencyStatus(name="mongo", status=ServiceStatus.UP),
        DependencyStatus(name="redis", status=ServiceStatus.DEGRADED),
        DependencyStatus(name="rabbitmq", status=ServiceStatus.DOWN),
    ]
    assert service._aggregate_status(statuses) is ServiceStatus.DOWN


def test_normalize_url_adds_slash() -> None:
    service = _make_service()
    assert service._normalize_url("http://example.com", "/health") == (
        "http://example.com/health"
    )
    assert service._normalize_url("http://example.com/api/", "version") == (
        "http://example.com/api/version"
    )


@pytest.mark.asyncio
async def test_evaluate_collects_dependency_statuses(monkeypatch) -> None:
    service = _make_service()
    _stub_core_probes(
        monkeypatch, service, ServiceStatus.UP, ServiceStatus.UP, ServiceStatus.UP
    )
    monkeypatch.setattr(
        service,
        "_check_http_service",
        AsyncMock(
            side_effect=[
                DependencyStatus(name="metric_store", status=ServiceStatus.UP),
                DependencyStatus(name="work_orders", status=ServiceStatus.DEGRADED),
                DependencyStatus(name="asset_registry", status=ServiceStatus.UP),
            ]
        ),
    )

    health = await service.evaluate()

    assert [dep.name for dep in health.dependencies] == [
        "mongo",
        "rabbitmq",
        "redis",
        "metric_store",
        "work_orders",
        "asset_registry",
    ]
    assert health.status is ServiceStatus.DEGRADED


@pytest.mark.asyncio
async def test_collaborators_are_not_critical(monkeypatch) -> None:
    service = _make_service()
    _stub_core_probes(
        monkeypatch, service, ServiceStatus.UP, ServiceStatus.UP, ServiceStatus.UP
    )
    monkeypatch.setattr(
        service,
        "_check_http_service",
        AsyncMock(
            side_effect=[
                DependencyStatus(name="metric_store", status=ServiceStatus.DOWN),
                DependencyStatus(name="work_orders", status=ServiceStatus.UP),
                DependencyStatus(name="asset_registry", status=ServiceStatus.UP),
            ]
        ),
    )

    health = await service.evaluate()

    by_name = {dep.name: dep for dep in health.dependencies}
    assert by_name["mongo"].critical is True
    assert by_name["metric_store"].critical is False
    assert health.status is ServiceStatus.DEGRADED


@pytest.mark.asyncio
async def test_critical_dependency_down_brings_system_down(monkeypatch) -> None:
    service = _make_service()
    _stub_core_probes(
        monkeypatch, service, ServiceStatus.DOWN, ServiceStatus.UP, ServiceStatus.UP
    )
    monkeypatch.setattr(
        service,
        "_check_http_service",
        AsyncMock(return_value=DependencyStatus("svc", ServiceStatus.UP)),
    )

    health = await service.evaluate()

    assert health.status is ServiceStatus.DOWN


@pytest.mark.asyncio
async def test_probe_exception_is_reported_as_down(monkeypatch) -> None:
    service = _make_service()
    _stub_core_probes(
        monkeypatch, service, ServiceStatus.UP, ServiceStatus.UP, ServiceStatus.UP
    )
    monkeypatch.setattr(
        service, "_check_redis", AsyncMock(side_effect=RuntimeError("boom"))
    )
    monkeypatch.setattr(
        service,
        "_check_http_service",
        AsyncMock(return_value=DependencyStatus("svc", ServiceStatus.UP)),
    )

    health = await service.evaluate()

    redis = next(dep for dep in health.dependencies if dep.name == "redis")
    assert redis.status is ServiceStatus.DOWN
    assert redis.message == "boom"
    assert health.status is ServiceStatus.DOWN


@pytest.mark.asyncio
async def test_check_mongo_reports_database_name() -> None:
    service = _make_service()

    status = await service._check_mongo()

    assert status.status is ServiceStatus.UP
    assert status.details == {"database": "predictive_db"}


@pytest.mark.asyncio
async def test_check_mongo_handles_failure() -> None:
    class _FailingMongo:
        def __init__(self) -> None:
            self.client = SimpleNamespace(
                admin=SimpleNamespace(
                    command=lambda cmd: (_ for _ in ()).throw(
                        RuntimeError("mongo error")
                    )
                )
            )
            self.db = SimpleNamespace(name="predictive_db")

    service = _make_service(mongo_database=cast(MongoDatabase, _FailingMongo()))

    status = await service._check_mongo()
    assert status.status is ServiceStatus.DOWN
    assert "mongo error" in status.message


@pytest.mark.asyncio
async def test_missing_urls_are_unknown() -> None:
    service = _make_service(broker_url="", redis_url="", metric_store_url="")

    assert (await service._check_rabbitmq()).status is ServiceStatus.UNKNOWN
    assert (await service._check_redis()).status is ServiceStatus.UNKNOWN
    status = await service._check_http_service(
        name="metric_store", base_url="", paths=("/health",)
    )
    assert status.status is ServiceStatus.UNKNOWN


@pytest.mark.asyncio
async def test_check_rabbitmq_success(monkeypatch) -> None:
    service = _make_service()

    class _Connection:
        def close(self) -> None:
            return None

    monkeypatch.setattr(
        "src.infrastructure.services.health_check_service.pika.BlockingConnection",
        lambda *args, **kwargs: _Connection(),
    )
    monkeypatch.setattr(
        "src.infrastructure.services.health_check_service.pika.URLParameters",
        lambda url: url,
    )

    status = await service._check_rabbitmq()
    assert status.status is ServiceStatus.UP


@pytest.mark.asyncio
async def test_check_rabbitmq_failure(monkeypatch) -> None:
    service = _make_service()

    def _raise(*args, **kwargs):
        raise RuntimeError("fail")

    monkeypatch.setattr(
        "src.infrastructure.services.health_check_service.pika.BlockingConnection",
        _raise,
    )

    status = await service._check_rabbitmq()
    assert status.status is ServiceStatus.DOWN


@pytest.mark.asyncio
async def test_check_redis_success_closes_client(monkeypatch) -> None:
    service = _make_service()

    class _RedisClient:
        closed = False

        async def ping(self):
            return True

        async def aclose(self):
            self.closed = True

    client = _RedisClient()
    monkeypatch.setattr(
        "src.infrastructure.services.health_check_service.aioredis.from_url",
        lambda *args, **kwargs: client,
    )

    status = await service._check_redis()
    assert status.status is ServiceStatus.UP
    assert client.closed is True


class _Response:
    def __init__(self, status_code: int):
        self.status_code = status_code


def _patch_client(monkeypatch, outcomes) -> list:
    requested: list = []
    outcomes = iter(outcomes)

    class _Client:
        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return None

        async def get(self, url):
            requested.append(url)
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

    monkeypatch.setattr(
        "src.infrastructure.services.health_check_service.httpx.AsyncClient",
        lambda timeout: _Client(),
    )
    return requested


@pytest.mark.asyncio
async def test_check_http_service_attempts_multiple_paths(monkeypatch) -> None:
    service = _make_service()
    requested = _patch_client(monkeypatch, [_Response(500), _Response(200)])

    status = await service._check_http_service(
        name="metric_store", base_url="http://metrics", paths=("/health", "/version")
    )

    assert status.status is ServiceStatus.UP
    assert requested == ["http://metrics/health", "http://metrics/version"]
    assert len(status.details["attempts"]) == 2


@pytest.mark.asyncio
async def test_client_error_marks_collaborator_degraded(monkeypatch) -> None:
    service = _make_service()
    _patch_client(monkeypatch, [_Response(404)])

    status = await service._check_http_service(
        name="asset_registry", base_url="http://assets", paths=("/health",)
    )

    assert status.status is ServiceStatus.DEGRADED
    assert status.message == "HTTP 404"


@pytest.mark.asyncio
async def test_connection_error_marks_collaborator_down(monkeypatch) -> None:
    service = _make_service()
    _patch_client(
        monkeypatch,
        [httpx.ConnectError("refused") for _ in range(3)],
    )

    status = await service._check_http_service(
        name="work_orders",
        base_url="http://work-orders",
        paths=("/health", "/version", "/"),
    )

    assert status.status is ServiceStatus.DOWN
    assert [attempt["path"] for attempt in status.details["attempts"]] == [
        "/health",
        "/version",
        "/",
    ]
