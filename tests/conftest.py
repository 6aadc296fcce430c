from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest
from pymongo.errors import DuplicateKeyError

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext
from src.domain.entities.errors import (
    AssetNotFoundError,
    AssetRegistryError,
    MetricStoreError,
    WorkOrderGatewayError,
)
from src.domain.entities.model import DEFAULT_PARAMETERS, Model, ModelType
from src.domain.entities.prediction import (
    Factor,
    Prediction,
    PredictionScore,
    PredictionType,
)
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import Reading, SensorType
from src.domain.gateways.asset_registry_gateway import IAssetRegistryGateway
from src.domain.gateways.metric_store_gateway import IMetricStoreGateway
from src.domain.gateways.work_order_gateway import IWorkOrderGateway

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TENANT = "tenant-a"
ACTOR = "user-1"


# ---------------------------------------------------------------------------
# MongoDB double
# ---------------------------------------------------------------------------


def _matches_condition(value: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        for operator, operand in condition.items():
            if operator == "$in":
                if value not in operand:
                    return False
            elif operator == "$gte":
                if value is None or value < operand:
                    return False
            else:  # pragma: no cover - unsupported operator in tests
                raise NotImplementedError(operator)
        return True
    return value == condition


def matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(
        _matches_condition(document.get(key), condition)
        for key, condition in query.items()
    )


class FakeMongoDatabase:
    """In-memory stand-in for ``MongoDatabase`` with its unique indexes."""

    def __init__(self) -> None:
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.indexes_created = False
        self.index_error: Optional[Exception] = None
        self.closed = False

    def _docs(self, collection_name: str) -> List[Dict[str, Any]]:
        return self.collections.setdefault(collection_name, [])

    def _violates_anomaly_index(
        self, collection_name: str, document: Dict[str, Any]
    ) -> bool:
        if collection_name != "anomalies":
            return False
        fields = ("tenant_id", "asset_id", "sensor_type", "timestamp")
        key = tuple(document.get(field) for field in fields)
        return any(
            tuple(existing.get(field) for field in fields) == key
            for existing in self._docs(collection_name)
        )

    def _violates_open_index(
        self, collection_name: str, document: Dict[str, Any], ignore: Any = None
    ) -> bool:
        if collection_name != "predictions" or not document.get("is_open"):
            return False
        key = (
            document["tenant_id"],
            document["asset_id"],
            document["prediction_type"],
        )
        return any(
            existing is not ignore
            and existing.get("is_open")
            and (
                existing["tenant_id"],
                existing["asset_id"],
                existing["prediction_type"],
            )
            == key
            for existing in self._docs(collection_name)
        )

    async def find_one(
        self, collection_name: str, query: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        for document in self._docs(collection_name):
            if matches(document, query):
                return dict(document)
        return None

    async def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort_by: Optional[str] = None,
        sort_direction: int = 1,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        results = [
            dict(document)
            for document in self._docs(collection_name)
            if matches(document, query)
        ]
        if sort_by:
            results.sort(key=lambda doc: doc.get(sort_by), reverse=sort_direction < 0)
        results = results[skip:]
        if limit:
            results = results[:limit]
        return results

    async def distinct(
        self, collection_name: str, key: str, query: Dict[str, Any]
    ) -> List[Any]:
        values: List[Any] = []
        for document in self._docs(collection_name):
            if matches(document, query) and document.get(key) not in values:
                values.append(document.get(key))
        return values

    async def count_documents(self, collection_name: str, query: Dict[str, Any]) -> int:
        return sum(1 for doc in self._docs(collection_name) if matches(doc, query))

    async def insert_one(
        self, collection_name: str, document: Dict[str, Any]
    ) -> Dict[str, Any]:
        if self._violates_open_index(collection_name, document):
            raise DuplicateKeyError("open_prediction_key_unique")
        if self._violates_anomaly_index(collection_name, document):
            raise DuplicateKeyError("anomaly_reading_unique")
        self._docs(collection_name).append(dict(document))
        return document

    async def replace_one(
        self, collection_name: str, query: Dict[str, Any], document: Dict[str, Any]
    ) -> Dict[str, Any]:
        documents = self._docs(collection_name)
        for index, existing in enumerate(documents):
            if matches(existing, query):
                documents[index] = dict(document)
                return document
        raise Exception(f"Document not found in {collection_name}")

    async def compare_and_replace(
        self,
        collection_name: str,
        query: Dict[str, Any],
        expected_version: int,
        document: Dict[str, Any],
    ) -> bool:
        guarded = dict(query, version=expected_version)
        documents = self._docs(collection_name)
        for index, existing in enumerate(documents):
            if matches(existing, guarded):
                if self._violates_open_index(collection_name, document, existing):
                    raise DuplicateKeyError("open_prediction_key_unique")
                documents[index] = dict(document)
                return True
        return False

    async def delete_one(self, collection_name: str, query: Dict[str, Any]) -> None:
        documents = self._docs(collection_name)
        for index, existing in enumerate(documents):
            if matches(existing, query):
                del documents[index]
                return
        raise Exception(f"Document not found in {collection_name}")

    async def create_indexes(self) -> None:
        if self.index_error is not None:
            raise self.index_error
        self.indexes_created = True

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class FakeMetricStore(IMetricStoreGateway):
    def __init__(self) -> None:
        self.streams: Dict[Tuple[str, SensorType], List[Reading]] = {}
        self.monitored: Dict[str, List[str]] = {}
        self.failing_tenants: set[str] = set()
        self.fetch_calls: List[Tuple[str, SensorType]] = []

    def add_stream(
        self,
        asset_id: str,
        sensor_type: SensorType,
        values: Sequence[float],
        end: Optional[datetime] = None,
        step: timedelta = timedelta(minutes=10),
        unit: Optional[str] = None,
    ) -> List[Reading]:
        readings = make_readings(asset_id, sensor_type, values, end, step, unit)
        self.streams[(asset_id, sensor_type)] = readings
        return readings

    def _check(self, context: RequestContext) -> None:
        if context.tenant_id in self.failing_tenants:
            raise MetricStoreError("Metric store request failed: unreachable")

    async def fetch_readings(
        self,
        context: RequestContext,
        asset_id: str,
        sensor_type: SensorType,
        since: datetime,
    ) -> List[Reading]:
        self._check(context)
        self.fetch_calls.append((asset_id, sensor_type))
        return [
            reading
            for reading in self.streams.get((asset_id, sensor_type), [])
            if reading.timestamp >= since
        ]

    async def list_sensor_types(
        self, context: RequestContext, asset_id: str
    ) -> List[SensorType]:
        self._check(context)
        return [sensor for (asset, sensor) in self.streams if asset == asset_id]

    async def list_monitored_assets(
        self, context: RequestContext, since: datetime
    ) -> List[str]:
        self._check(context)
        return list(self.monitored.get(context.tenant_id, []))


class FakeAssetRegistry(IAssetRegistryGateway):
    def __init__(self, assets: Iterable[AssetInfo] = ()) -> None:
        self.assets: Dict[str, AssetInfo] = {asset.asset_id: asset for asset in assets}
        self.unavailable = False

    async def resolve(self, context: RequestContext, asset_id: str) -> AssetInfo:
        if self.unavailable:
            raise AssetRegistryError("Asset registry request failed: unreachable")
        if asset_id not in self.assets:
            raise AssetNotFoundError(asset_id)
        return self.assets[asset_id]

    async def list_by_type(
        self, context: RequestContext, asset_type: str
    ) -> List[AssetInfo]:
        if self.unavailable:
            raise AssetRegistryError("Asset registry request failed: unreachable")
        return [a for a in self.assets.values() if a.asset_type == asset_type]


class FakeWorkOrderGateway(IWorkOrderGateway):
    def __init__(self) -> None:
        self.created: List[Dict[str, Any]] = []
        self.error: Optional[WorkOrderGatewayError] = None

    async def create_from_prediction(
        self,
        context: RequestContext,
        prediction: Prediction,
        priority: str,
        asset: Optional[AssetInfo] = None,
    ) -> str:
        if self.error is not None:
            raise self.error
        self.created.append(
            {
                "prediction_id": prediction.id,
                "priority": priority,
                "asset": asset,
                "tenant_id": context.tenant_id,
            }
        )
        return f"WO-{len(self.created):04d}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_readings(
    asset_id: str,
    sensor_type: SensorType,
    values: Sequence[float],
    end: Optional[datetime] = None,
    step: timedelta = timedelta(minutes=10),
    unit: Optional[str] = None,
) -> List[Reading]:
    """Time-ordered readings whose last value is taken at ``end``."""
    end = end or datetime.now(timezone.utc)
    count = len(values)
    return [
        Reading(
            asset_id=asset_id,
            sensor_type=sensor_type,
            value=float(value),
            timestamp=end - step * (count - 1 - index),
            unit=unit,
        )
        for index, value in enumerate(values)
    ]


def make_model(
    model_type: ModelType,
    asset_type: str = "pump",
    tenant_id: str = TENANT,
    sensor_type: Optional[SensorType] = None,
    **overrides: Any,
) -> Model:
    return Model(
        tenant_id=tenant_id,
        name=f"{asset_type} {model_type.value}",
        asset_type=asset_type,
        model_type=model_type,
        sensor_type=sensor_type,
        parameters=DEFAULT_PARAMETERS[model_type].merged_with(overrides),
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _unwire_container():
    """Undo the container's package wiring so it does not leak across tests."""
    yield
    from dependency_injector.wiring import unwire

    import src.application
    import src.presentation

    unwire(packages=[src.presentation, src.application])


@pytest.fixture()
def fake_mongo_database() -> FakeMongoDatabase:
    return FakeMongoDatabase()


@pytest.fixture()
def context() -> RequestContext:
    return RequestContext(tenant_id=TENANT, actor_id=ACTOR)


@pytest.fixture()
def other_context() -> RequestContext:
    return RequestContext(tenant_id="tenant-b", actor_id="user-2")


@pytest.fixture()
def dummy_now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture()
def sample_asset(dummy_now: datetime) -> AssetInfo:
    return AssetInfo(
        asset_id="pump-17",
        name="Cooling pump 17",
        asset_type="pump",
        criticality=4,
        in_service_since=dummy_now - timedelta(days=400),
        last_maintenance_at=dummy_now - timedelta(days=45),
        maintenance_count=3,
        replacement_cost=12000.0,
    )


@pytest.fixture()
def metric_store() -> FakeMetricStore:
    return FakeMetricStore()


@pytest.fixture()
def asset_registry(sample_asset: AssetInfo) -> FakeAssetRegistry:
    return FakeAssetRegistry([sample_asset])


@pytest.fixture()
def work_order_gateway() -> FakeWorkOrderGateway:
    return FakeWorkOrderGateway()


@pytest.fixture()
def reading_factory():
    return make_readings


@pytest.fixture()
def model_factory():
    return make_model


def make_score(
    asset_id: str = "pump-17",
    prediction_type: PredictionType = PredictionType.FAILURE,
    probability: float = 60.0,
    confidence: float = 70.0,
    risk_level: RiskLevel = RiskLevel.HIGH,
    **extra: Any,
) -> PredictionScore:
    return PredictionScore(
        asset_id=asset_id,
        prediction_type=prediction_type,
        prediction_text=f"{prediction_type.value} at {probability:.0f}%",
        probability=probability,
        confidence=confidence,
        risk_level=risk_level,
        factors=[Factor(name="Signal", value=1.0, contribution=probability)],
        **extra,
    )


@pytest.fixture()
def score_factory():
    return make_score
