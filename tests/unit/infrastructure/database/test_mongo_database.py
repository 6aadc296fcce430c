from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, cast

import pymongo.errors
import pytest

from src.infrastructure.database.mongo_database import (
    ANOMALY_READING_INDEX,
    OPEN_PREDICTION_INDEX,
    MongoDatabase,
)


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class _StubCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self.documents = documents

    def sort(self, key: str, direction: int) -> "_StubCursor":
        self.documents.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def skip(self, count: int) -> "_StubCursor":
        self.documents = self.documents[count:]
        return self

    def limit(self, count: int) -> "_StubCursor":
        if count:
            self.documents = self.documents[:count]
        return self

    def __iter__(self):
        return iter(self.documents)


class _StubCollection:
    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.created_indexes: List[tuple] = []
        self.dropped_indexes: List[str] = []
        self.failing_indexes: set = set()

    def find_one(self, query):
        return next((dict(d) for d in self.documents if _matches(d, query)), None)

    def find(self, query):
        return _StubCursor([dict(d) for d in self.documents if _matches(d, query)])

    def distinct(self, key, query):
        values = []
        for document in self.documents:
            if _matches(document, query) and document.get(key) not in values:
                values.append(document.get(key))
        return values

    def count_documents(self, query):
        return sum(1 for d in self.documents if _matches(d, query))

    def insert_one(self, document):
        self.documents.append(dict(document))
        return SimpleNamespace(acknowledged=True)

    def replace_one(self, query, document):
        for index, existing in enumerate(self.documents):
            if _matches(existing, query):
                self.documents[index] = dict(document)
                return SimpleNamespace(acknowledged=True, matched_count=1)
        return SimpleNamespace(acknowledged=True, matched_count=0)

    def delete_one(self, query):
        for index, existing in enumerate(self.documents):
            if _matches(existing, query):
                del self.documents[index]
                return SimpleNamespace(acknowledged=True, deleted_count=1)
        return SimpleNamespace(acknowledged=True, deleted_count=0)

    def create_index(self, keys, name, **options):
        if name in self.failing_indexes:
            raise pymongo.errors.OperationFailure("E11000 duplicate key error")
        self.created_indexes.append((keys, name, options))

    def drop_index(self, name):
        self.dropped_indexes.append(name)


class _StubDatabase:
    name = "predictive_db"

    def __init__(self) -> None:
        self.collections: Dict[str, _StubCollection] = {}

    def __getitem__(self, name: str) -> _StubCollection:
        return self.collections.setdefault(name, _StubCollection())


class _StubMongoClient:
    def __init__(self, uri: str, **options: Any) -> None:
        self.uri = uri
        self.options = options
        self.databases: Dict[str, _StubDatabase] = {}
        self.closed = False

    def __getitem__(self, name: str) -> _StubDatabase:
        return self.databases.setdefault(name, _StubDatabase())

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def patch_mongo_client(monkeypatch) -> None:
    monkeypatch.setattr(
        "src.infrastructure.database.mongo_database.MongoClient",
        _StubMongoClient,
    )


@pytest.fixture()
def database() -> MongoDatabase:
    return MongoDatabase("mongodb://localhost:27017", "predictive_db")


@pytest.mark.asyncio
async def test_insert_and_find_document(database: MongoDatabase) -> None:
    document = {"id": "123", "tenant_id": "tenant-a"}
    await database.insert_one("models", document)

    assert await database.find_one("models", {"id": "123"}) == document
    assert await database.count_documents("models", {"tenant_id": "tenant-a"}) == 1


@pytest.mark.asyncio
async def test_replace_missing_document_raises(database: MongoDatabase) -> None:
    with pytest.raises(Exception, match="Document not found"):
        await database.replace_one("models", {"id": "nope"}, {"id": "nope"})


@pytest.mark.asyncio
async def test_delete_document(database: MongoDatabase) -> None:
    await database.insert_one("models", {"id": "1"})

    await database.delete_one("models", {"id": "1"})

    assert await database.find_one("models", {"id": "1"}) is None
    with pytest.raises(Exception, match="Document not found"):
        await database.delete_one("models", {"id": "1"})


@pytest.mark.asyncio
async def test_find_many_sorts_and_pages(database: MongoDatabase) -> None:
    for index in range(5):
        await database.insert_one("anomalies", {"id": str(index), "rank": index})

    results = await database.find_many(
        "anomalies", {}, sort_by="rank", sort_direction=-1, skip=1, limit=2
    )
    everything = await database.find_many("anomalies", {}, limit=0)

    assert [doc["rank"] for doc in results] == [3, 2]
    assert len(everything) == 5


@pytest.mark.asyncio
async def test_distinct_values(database: MongoDatabase) -> None:
    await database.insert_one("models", {"tenant_id": "a", "status": "active"})
    await database.insert_one("models", {"tenant_id": "a", "status": "active"})
    await database.insert_one("models", {"tenant_id": "b", "status": "inactive"})

    assert await database.distinct("models", "tenant_id", {"status": "active"}) == [
        "a"
    ]


@pytest.mark.asyncio
async def test_compare_and_replace_guards_on_version(database: MongoDatabase) -> None:
    await database.insert_one("predictions", {"id": "p1", "version": 0})

    swapped = await database.compare_and_replace(
        "predictions", {"id": "p1"}, 0, {"id": "p1", "version": 1}
    )
    stale = await database.compare_and_replace(
        "predictions", {"id": "p1"}, 0, {"id": "p1", "version": 2}
    )

    assert swapped is True
    assert stale is False
    assert (await database.find_one("predictions", {"id": "p1"}))["version"] == 1


@pytest.mark.asyncio
async def test_create_indexes_includes_open_prediction_guard(
    database: MongoDatabase,
) -> None:
    await database.create_indexes()

    predictions = cast(_StubCollection, database.db["predictions"])
    by_name = {
        name: (keys, options) for keys, name, options in predictions.created_indexes
    }
    keys, options = by_name[OPEN_PREDICTION_INDEX]

    assert keys == [("tenant_id", 1), ("asset_id", 1), ("prediction_type", 1)]
    assert options == {"unique": True, "partialFilterExpression": {"is_open": True}}
    anomalies = cast(_StubCollection, database.db["anomalies"])
    assert {entry[1] for entry in anomalies.created_indexes} == {
        ANOMALY_READING_INDEX,
        "tenant_timestamp_idx",
        "tenant_asset_timestamp_idx",
    }


@pytest.mark.asyncio
async def test_create_indexes_is_repeatable(database: MongoDatabase) -> None:
    await database.create_indexes()
    await database.create_indexes()

    models = cast(_StubCollection, database.db["models"])
    assert [entry[1] for entry in models.created_indexes].count("status_idx") == 2
    for collection in ("predictions", "anomalies", "models"):
        assert cast(_StubCollection, database.db[collection]).dropped_indexes == []


@pytest.mark.asyncio
async def test_anomaly_reading_index_is_unique(database: MongoDatabase) -> None:
    await database.create_indexes()

    anomalies = cast(_StubCollection, database.db["anomalies"])
    keys, options = next(
        (keys, options)
        for keys, name, options in anomalies.created_indexes
        if name == ANOMALY_READING_INDEX
    )

    assert [field for field, _ in keys] == [
        "tenant_id",
        "asset_id",
        "sensor_type",
        "timestamp",
    ]
    assert options == {"unique": True}


@pytest.mark.asyncio
async def test_required_index_failure_aborts_startup(database: MongoDatabase) -> None:
    predictions = cast(_StubCollection, database.db["predictions"])
    predictions.failing_indexes.add(OPEN_PREDICTION_INDEX)

    with pytest.raises(pymongo.errors.OperationFailure):
        await database.create_indexes()


@pytest.mark.asyncio
async def test_optional_index_failure_is_tolerated(database: MongoDatabase) -> None:
    models = cast(_StubCollection, database.db["models"])
    models.failing_indexes.add("status_idx")

    await database.create_indexes()

    predictions = cast(_StubCollection, database.db["predictions"])
    assert OPEN_PREDICTION_INDEX in {entry[1] for entry in predictions.created_indexes}
    assert "tenant_model_id_idx" in {entry[1] for entry in models.created_indexes}


def test_client_returns_timezone_aware_datetimes(database: MongoDatabase) -> None:
    assert cast(_StubMongoClient, database.client).options == {"tz_aware": True}


def test_close_closes_client(database: MongoDatabase) -> None:
    database.close()

    assert cast(_StubMongoClient, database.client).closed is True
