"""
MongoDB Model Repository - Infrastructure Layer

This module implements the ModelRepository interface using MongoDB
as the underlying data store.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

import pymongo

from src.domain.entities.errors import ModelNotFoundError, ModelOperationError
from src.domain.entities.model import (
    Model,
    ModelParameters,
    ModelStatus,
    ModelType,
    TrainingStats,
)
from src.domain.entities.telemetry import SensorType
from src.domain.repositories.model_repository import IModelRepository
from src.infrastructure.database import MODELS_COLLECTION, MongoDatabase


class ModelRepository(IModelRepository):
    """MongoDB implementation of the ModelRepository."""

    COLLECTION_NAME = MODELS_COLLECTION

    def __init__(self, mongo_database: MongoDatabase):
        """
        Initialize the MongoDB model repository.

        Args:
            mongo_database: MongoDB database client
        """
        self.db = mongo_database

    def _to_document(self, model: Model) -> Dict[str, Any]:
        """Convert a Model entity to a MongoDB document."""
        stats = model.training_stats
        return {
            "id": str(model.id),
            "tenant_id": model.tenant_id,
            "name": model.name,
            "description": model.description,
            "asset_type": model.asset_type,
            "model_type": model.model_type.value,
            "sensor_type": model.sensor_type.value if model.sensor_type else None,
            "status": model.status.value,
            "parameters": model.parameters.to_dict(),
            "accuracy": model.accuracy,
            "training_data_points": model.training_data_points,
            "training_stats": (
                {
                    "count": stats.count,
                    "mean": stats.mean,
                    "std_dev": stats.std_dev,
                    "min": stats.min,
                    "max": stats.max,
                    "q1": stats.q1,
                    "q2": stats.q2,
                    "q3": stats.q3,
                }
                if stats is not None
                else None
            ),
            "total_predictions": model.total_predictions,
            "correct_predictions": model.correct_predictions,
            "last_trained_at": model.last_trained_at,
            "created_at": model.created_at,
            "updated_at": model.updated_at,
        }

    def _to_entity(self, document: Dict[str, Any]) -> Model:
        """Convert a MongoDB document to a Model entity."""
        model_type = ModelType(document["model_type"])
        try:
            status = ModelStatus(document.get("status", ModelStatus.ACTIVE.value))
        except ValueError:
            status = ModelStatus.INACTIVE

        stats_payload = document.get("training_stats")
        training_stats = None
        if stats_payload:
            training_stats = TrainingStats(
                count=int(stats_payload["count"]),
                mean=float(stats_payload["mean"]),
                std_dev=float(stats_payload["std_dev"]),
                min=float(stats_payload["min"]),
                max=float(stats_payload["max"]),
                q1=float(stats_payload["q1"]),
                q2=float(stats_payload["q2"]),
                q3=float(stats_payload["q3"]),
            )

        sensor_type = document.get("sensor_type")
        return Model(
            id=UUID(document["id"]),
            tenant_id=document["tenant_id"],
            name=document["name"],
            description=document.get("description"),
            asset_type=document["asset_type"],
            model_type=model_type,
            sensor_type=SensorType(sensor_type) if sensor_type else None,
            status=status,
            parameters=ModelParameters.from_dict(document.get("parameters")),
            accuracy=document.get("accuracy"),
            training_data_points=int(document.get("training_data_points", 0)),
            training_stats=training_stats,
            total_predictions=int(document.get("total_predictions", 0)),
            correct_predictions=int(document.get("correct_predictions", 0)),
            last_trained_at=document.get("last_trained_at"),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )

    async def find_by_id(self, tenant_id: str, model_id: UUID) -> Optional[Model]:
        """
        Find a model by its ID within the tenant.

        Returns:
            The model if found, None otherwise
        """
        document = await self.db.find_one(
            self.COLLECTION_NAME, {"tenant_id": tenant_id, "id": str(model_id)}
        )
        if document is None:
            return None
        return self._to_entity(document)

    async def find_all(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        asset_type: Optional[str] = None,
        model_type: Optional[ModelType] = None,
        status: Optional[ModelStatus] = None,
    ) -> List[Model]:
        query: Dict[str, Any] = {"tenant_id": tenant_id}

        if asset_type is not None:
            query["asset_type"] = asset_type

        if model_type is not None:
            query["model_type"] = model_type.value

        if status is not None:
            query["status"] = status.value

        documents = await self.db.find_many(
            self.COLLECTION_NAME,
            query,
            sort_by="created_at",
            sort_direction=pymongo.DESCENDING,
            skip=skip,
            limit=limit,
        )

        return [self._to_entity(document) for document in documents]

    async def find_active(
        self, tenant_id: str, asset_type: str, model_type: ModelType
    ) -> Optional[Model]:
        documents = await self.db.find_many(
            self.COLLECTION_NAME,
            {
                "tenant_id": tenant_id,
                "asset_type": asset_type,
                "model_type": model_type.value,
                "status": ModelStatus.ACTIVE.value,
            },
            sort_by="updated_at",
            sort_direction=pymongo.DESCENDING,
            limit=1,
        )
        if not documents:
            return None
        return self._to_entity(documents[0])

    async def list_active_tenants(self) -> List[str]:
        tenants = await self.db.distinct(
            self.COLLECTION_NAME, "tenant_id", {"status": ModelStatus.ACTIVE.value}
        )
        return sorted(str(tenant) for tenant in tenants if tenant)

    async def create(self, model: Model) -> Model:
        """
        Create a new model.

        Raises:
            ModelOperationError: If the model creation fails
        """
        try:
            document = self._to_document(model)
            await self.db.insert_one(self.COLLECTION_NAME, document)
            return model
        except Exception as e:
            raise ModelOperationError(f"Failed to create model: {str(e)}")

    async def update(self, model: Model) -> Model:
        """
        Update an existing model.

        Raises:
            ModelNotFoundError: If the model does not exist
            ModelOperationError: If the model update fails
        """
        try:
            document = self._to_document(model)
            await self.db.replace_one(
                self.COLLECTION_NAME,
                {"tenant_id": model.tenant_id, "id": str(model.id)},
                document,
            )
            return model
        except Exception as e:
            if "Document not found" in str(e):
                raise ModelNotFoundError(str(model.id))
            raise ModelOperationError(f"Failed to update model: {str(e)}")
