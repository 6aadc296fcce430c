"""Health probes for the engine's storage, broker and collaborators."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urljoin

import httpx
import pika
import redis.asyncio as aioredis

from src.domain.entities.health import DependencyStatus, ServiceStatus, SystemHealth
from src.domain.ports.health_check import IHealthCheckService
from src.infrastructure.database.mongo_database import MongoDatabase

# Probe paths tried in order for every HTTP collaborator.
COLLABORATOR_PATHS: Tuple[str, ...] = ("/health", "/version", "/")


def _elapsed_ms(start: float) -> float:
    return (perf_counter() - start) * 1000


class HealthCheckService(IHealthCheckService):
    """
    Collect health information for external dependencies.

    MongoDB, RabbitMQ and Redis are critical: the engine cannot record
    predictions or run schedules without them. The metric store, the
    work-order system and the asset registry only degrade the system.
    """

    def __init__(
        self,
        mongo_database: MongoDatabase,
        broker_url: str,
        redis_url: str,
        metric_store_url: str,
        work_order_url: str,
        asset_registry_url: str,
        *,
        http_timeout: float = 5.0,
        socket_timeout: float = 5.0,
    ) -> None:
        self._mongo_database = mongo_database
        self._broker_url = broker_url
        self._redis_url = redis_url
        self._collaborators = {
            "metric_store": metric_store_url,
            "work_orders": work_order_url,
            "asset_registry": asset_registry_url,
        }
        self._http_timeout = http_timeout
        self._socket_timeout = socket_timeout

    async def evaluate(self) -> SystemHealth:
        """Run every probe concurrently and fold the results into one status."""

        probes: Dict[str, Awaitable[DependencyStatus]] = {
            "mongo": self._check_mongo(),
            "rabbitmq": self._check_rabbitmq(),
            "redis": self._check_redis(),
        }
        for name, base_url in self._collaborators.items():
            probes[name] = self._check_http_service(
                name=name, base_url=base_url, paths=COLLABORATOR_PATHS
            )

        results = await asyncio.gather(*probes.values(), return_exceptions=True)

        dependencies: List[DependencyStatus] = []
        for name, result in zip(probes, results):
            if isinstance(result, BaseException):
                result = DependencyStatus(
                    name=name, status=ServiceStatus.DOWN, message=str(result)
                )
            result.critical = name not in self._collaborators
            dependencies.append(result)

        return SystemHealth(
            status=self._aggregate_status(dependencies), dependencies=dependencies
        )

    def _aggregate_status(self, statuses: Iterable[DependencyStatus]) -> ServiceStatus:
        effective = {status.effective_status for status in statuses}
        for candidate in (
            ServiceStatus.DOWN,
            ServiceStatus.DEGRADED,
            ServiceStatus.UNKNOWN,
        ):
            if candidate in effective:
                return candidate
        return ServiceStatus.UP

    async def _timed_probe(
        self,
        name: str,
        probe: Callable[[], Awaitable[Any]],
        success_message: str,
        failure_prefix: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> DependencyStatus:
        start = perf_counter()
        try:
            await probe()
        except Exception as exc:
            return DependencyStatus(
                name=name,
                status=ServiceStatus.DOWN,
                message=f"{failure_prefix}: {exc}",
                latency_ms=_elapsed_ms(start),
            )
        return DependencyStatus(
            name=name,
            status=ServiceStatus.UP,
            message=success_message,
            latency_ms=_elapsed_ms(start),
            details=details or {},
        )

    @staticmethod
    def _not_configured(name: str, what: str) -> DependencyStatus:
        return DependencyStatus(
            name=name,
            status=ServiceStatus.UNKNOWN,
            message=f"{what} not configured.",
        )

    async def _check_mongo(self) -> DependencyStatus:
        if not self._mongo_database:
            return self._not_configured("mongo", "Mongo database client")

        database = self._mongo_database

        async def ping() -> None:
            await asyncio.to_thread(database.client.admin.command, "ping")

        return await self._timed_probe(
            "mongo",
            ping,
            "MongoDB ping successful",
            "MongoDB ping failed",
            details={"database": database.db.name},
        )

    async def _check_rabbitmq(self) -> DependencyStatus:
        if not self._broker_url:
            return self._not_configured("rabbitmq", "RabbitMQ broker URL")

        def connect_and_close() -> None:
            connection = pika.BlockingConnection(pika.URLParameters(self._broker_url))
            connection.close()

        async def ping() -> None:
            await asyncio.to_thread(connect_and_close)

        return await self._timed_probe(
            "rabbitmq",
            ping,
            "RabbitMQ connection successful",
            "RabbitMQ connection failed",
        )

    async def _check_redis(self) -> DependencyStatus:
        if not self._redis_url:
            return self._not_configured("redis", "Redis URL")

        client = aioredis.from_url(
            self._redis_url,
            socket_connect_timeout=self._socket_timeout,
            socket_timeout=self._socket_timeout,
        )
        try:
            return await self._timed_probe(
                "redis", client.ping, "Redis ping successful", "Redis ping failed"
            )
        finally:
            await client.aclose()

    async def _check_http_service(
        self,
        *,
        name: str,
        base_url: str,
        paths: Iterable[str],
    ) -> DependencyStatus:
        """Try each path until one answers without a server error."""
        if not base_url:
            return self._not_configured(name, "Service URL")

        attempts: List[Dict[str, Any]] = []
        result: Optional[DependencyStatus] = None
        for path in paths:
            result = await self._hit_http_endpoint(
                name=name, base_url=base_url, path=path
            )
            attempts.append(
                {
                    "path": path,
                    "status": result.status.value,
                    "message": result.message,
                    "checked_at": datetime.now(timezone.utc).isoformat(),
                }
            )
            if result.status != ServiceStatus.DOWN:
                break

        if result is None:
            return DependencyStatus(
                name=name,
                status=ServiceStatus.UNKNOWN,
                message="No probe paths configured",
            )
        result.details.setdefault("attempts", attempts)
        return result

    async def _hit_http_endpoint(
        self,
        *,
        name: str,
        base_url: str,
        path: str,
    ) -> DependencyStatus:
        url = self._normalize_url(base_url, path)
        start = perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self._http_timeout) as client:
                response = await client.get(url)
        except httpx.RequestError as exc:
            return DependencyStatus(
                name=name,
                status=ServiceStatus.DOWN,
                message=f"HTTP request failed: {exc}",
                latency_ms=_elapsed_ms(start),
                details={"url": url},
            )

        status_code = response.status_code
        if status_code >= 500:
            status = ServiceStatus.DOWN
        elif status_code >= 400:
            status = ServiceStatus.DEGRADED
        else:
            status = ServiceStatus.UP
        return DependencyStatus(
            name=name,
            status=status,
            message=f"HTTP {status_code}",
            latency_ms=_elapsed_ms(start),
            details={"url": url, "status_code": status_code},
        )

    @staticmethod
    def _normalize_url(base_url: str, path: str) -> str:
        if not path:
            return base_url
        base = base_url if base_url.endswith("/") else f"{base_url}/"
        return urljoin(base, path.lstrip("/"))
