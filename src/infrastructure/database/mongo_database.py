"""
MongoDB Database - Infrastructure Layer

This module provides a MongoDB database client for the predictive maintenance
collections. It handles connection, collections, CRUD helpers and the index
set the repositories rely on, including the partial unique index that keeps
at most one open prediction per asset and prediction type.
"""

from typing import Any, Dict, List, Optional, Tuple

import pymongo
import pymongo.errors
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from src.shared import get_logger

logger = get_logger(__name__)

PREDICTIONS_COLLECTION = "predictions"
ANOMALIES_COLLECTION = "anomalies"
MODELS_COLLECTION = "models"

OPEN_PREDICTION_INDEX = "open_prediction_key_unique"
ANOMALY_READING_INDEX = "anomaly_reading_unique"

# Uniqueness guards the repositories depend on; startup fails without them.
REQUIRED_INDEXES = frozenset({OPEN_PREDICTION_INDEX, ANOMALY_READING_INDEX})


class MongoDatabase:
    """MongoDB database client."""

    def __init__(self, mongo_uri: str, db_name: str):
        """
        Initialize the MongoDB database client.

        Args:
            mongo_uri: MongoDB connection URI
            db_name: Name of the database to use
        """
        self.client: MongoClient = MongoClient(mongo_uri, tz_aware=True)
        self.db: Database = self.client[db_name]

    def get_collection(self, collection_name: str) -> Collection:
        """Get a collection from the database."""
        return self.db[collection_name]

    async def find_one(
        self, collection_name: str, query: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Find a single document in a collection.

        Args:
            collection_name: Name of the collection
            query: Query to match documents

        Returns:
            The document if found, None otherwise
        """
        return self.db[collection_name].find_one(query)

    async def find_many(
        self,
        collection_name: str,
        query: Dict[str, Any],
        sort_by: Optional[str] = None,
        sort_direction: int = 1,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Find multiple documents in a collection.

        Args:
            collection_name: Name of the collection
            query: Query to match documents
            sort_by: Field to sort by
            sort_direction: Sort direction (1 for ascending, -1 for descending)
            skip: Number of documents to skip
            limit: Maximum number of documents to return, 0 for no limit

        Returns:
            List of documents
        """
        cursor = self.db[collection_name].find(query)

        if sort_by:
            cursor = cursor.sort(sort_by, sort_direction)

        cursor = cursor.skip(skip).limit(limit)

        return list(cursor)

    async def distinct(
        self, collection_name: str, key: str, query: Dict[str, Any]
    ) -> List[Any]:
        """Distinct values of ``key`` among the documents matching ``query``."""
        return list(self.db[collection_name].distinct(key, query))

    async def count_documents(
        self, collection_name: str, query: Dict[str, Any]
    ) -> int:
        """Count the documents matching ``query``."""
        return int(self.db[collection_name].count_documents(query))

    async def insert_one(
        self, collection_name: str, document: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Insert a document into a collection.

        Args:
            collection_name: Name of the collection
            document: Document to insert

        Returns:
            The inserted document with any generated fields

        Raises:
            pymongo.errors.DuplicateKeyError: If a unique index rejects it
            Exception: If the insert is not acknowledged
        """
        result = self.db[collection_name].insert_one(document)
        if not result.acknowledged:
            raise Exception(f"Failed to insert document in {collection_name}")
        return document

    async def replace_one(
        self, collection_name: str, query: Dict[str, Any], document: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Replace a document in a collection.

        Raises:
            Exception: If the document does not exist or the replace fails
        """
        result = self.db[collection_name].replace_one(query, document)
        if result.matched_count == 0:
            raise Exception(f"Document not found in {collection_name}")
        if not result.acknowledged:
            raise Exception(f"Failed to replace document in {collection_name}")
        return document

    async def compare_and_replace(
        self,
        collection_name: str,
        query: Dict[str, Any],
        expected_version: int,
        document: Dict[str, Any],
    ) -> bool:
        """
        Replace a document only while it still holds ``expected_version``.

        Returns:
            True when the document was replaced, False when another writer
            changed or removed it first
        """
        guarded = dict(query)
        guarded["version"] = expected_version
        result = self.db[collection_name].replace_one(guarded, document)
        if not result.acknowledged:
            raise Exception(f"Failed to replace document in {collection_name}")
        return result.matched_count == 1

    async def delete_one(self, collection_name: str, query: Dict[str, Any]) -> None:
        """
        Delete a document from a collection.

        Raises:
            Exception: If the document does not exist or the delete fails
        """
        result = self.db[collection_name].delete_one(query)
        if result.deleted_count == 0:
            raise Exception(f"Document not found in {collection_name}")
        if not result.acknowledged:
            raise Exception(f"Failed to delete document in {collection_name}")

    def close(self) -> None:
        """Close the database connection."""
        self.client.close()

    def _ensure_indexes(
        self,
        collection_name: str,
        indexes: List[Tuple[Any, str, Dict[str, Any]]],
    ) -> None:
        # create_index is a no-op for an index that already exists as declared.
        for keys, name, options in indexes:
            try:
                self.db[collection_name].create_index(keys, name=name, **options)
            except pymongo.errors.OperationFailure as e:
                if name in REQUIRED_INDEXES:
                    logger.error(
                        "mongo.indexes.required_failed",
                        collection=collection_name,
                        index=name,
                        error=str(e),
                    )
                    raise
                logger.warning(
                    "mongo.indexes.create_failed",
                    collection=collection_name,
                    index=name,
                    error=str(e),
                )

    async def create_indexes(self) -> None:
        """
        Create all necessary indexes for the application.
        This is an async method to be called during application startup.

        Raises:
            pymongo.errors.OperationFailure: If a required unique index cannot
                be built, e.g. because existing documents violate it
        """
        self._ensure_indexes(
            PREDICTIONS_COLLECTION,
            [
                (
                    [("tenant_id", 1), ("asset_id", 1), ("prediction_type", 1)],
                    OPEN_PREDICTION_INDEX,
                    {
                        "unique": True,
                        "partialFilterExpression": {"is_open": True},
                    },
                ),
                (
                    [("tenant_id", 1), ("id", 1)],
                    "tenant_prediction_id_idx",
                    {"unique": True},
                ),
                (
                    [("tenant_id", 1), ("asset_id", 1), ("created_at", -1)],
                    "tenant_asset_created_idx",
                    {"background": True},
                ),
                (
                    [("tenant_id", 1), ("status", 1), ("risk_level", 1)],
                    "tenant_status_risk_idx",
                    {"background": True},
                ),
            ],
        )
        self._ensure_indexes(
            ANOMALIES_COLLECTION,
            [
                (
                    [
                        ("tenant_id", 1),
                        ("asset_id", 1),
                        ("sensor_type", 1),
                        ("timestamp", 1),
                    ],
                    ANOMALY_READING_INDEX,
                    {"unique": True},
                ),
                (
                    [("tenant_id", 1), ("timestamp", pymongo.DESCENDING)],
                    "tenant_timestamp_idx",
                    {"background": True},
                ),
                (
                    [("tenant_id", 1), ("asset_id", 1), ("timestamp", -1)],
                    "tenant_asset_timestamp_idx",
                    {"background": True},
                ),
            ],
        )
        self._ensure_indexes(
            MODELS_COLLECTION,
            [
                ([("tenant_id", 1), ("id", 1)], "tenant_model_id_idx", {"unique": True}),
                (
                    [
                        ("tenant_id", 1),
                        ("asset_type", 1),
                        ("model_type", 1),
                        ("status", 1),
                    ],
                    "tenant_asset_type_model_status_idx",
                    {"background": True},
                ),
                ("status", "status_idx", {}),
            ],
        )
