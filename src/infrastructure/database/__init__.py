"""
Database package - Infrastructure Layer

This package contains the MongoDB client used by the repositories to persist
predictions, anomalies and models.
"""

from src.infrastructure.database.mongo_database import (
    ANOMALIES_COLLECTION,
    MODELS_COLLECTION,
    PREDICTIONS_COLLECTION,
    MongoDatabase,
)

__all__ = [
    "MongoDatabase",
    "PREDICTIONS_COLLECTION",
    "ANOMALIES_COLLECTION",
    "MODELS_COLLECTION",
]
