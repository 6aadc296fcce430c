"""
MongoDB Prediction Repository - Infrastructure Layer

This module implements the PredictionRepository interface using MongoDB.
Open predictions carry an ``is_open`` flag so that a partial unique index can
reject a second open prediction for the same asset and prediction type.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import pymongo
import pymongo.errors

from src.domain.entities.errors import (
    DuplicateOpenPredictionError,
    ModelOperationError,
)
from src.domain.entities.prediction import (
    OPEN_STATUSES,
    Factor,
    Prediction,
    PredictionStatus,
    PredictionType,
)
from src.domain.entities.risk import RiskLevel
from src.domain.repositories.prediction_repository import IPredictionRepository
from src.infrastructure.database import PREDICTIONS_COLLECTION, MongoDatabase


class PredictionRepository(IPredictionRepository):
    """MongoDB implementation of the PredictionRepository."""

    COLLECTION_NAME = PREDICTIONS_COLLECTION

    def __init__(self, mongo_database: MongoDatabase):
        self.db = mongo_database

    def _to_document(self, prediction: Prediction) -> Dict[str, Any]:
        """Convert a Prediction entity to a MongoDB document."""
        return {
            "id": str(prediction.id),
            "tenant_id": prediction.tenant_id,
            "asset_id": prediction.asset_id,
            "prediction_type": prediction.prediction_type.value,
            "prediction_text": prediction.prediction_text,
            "probability": prediction.probability,
            "confidence": prediction.confidence,
            "low_confidence": prediction.low_confidence,
            "risk_level": prediction.risk_level.value,
            "status": prediction.status.value,
            "is_open": prediction.is_open,
            "factors": [
                {
                    "name": factor.name,
                    "value": factor.value,
                    "contribution": factor.contribution,
                    "threshold": factor.threshold,
                    "unit": factor.unit,
                    "description": factor.description,
                }
                for factor in prediction.factors
            ],
            "recommended_action": prediction.recommended_action,
            "predicted_date": prediction.predicted_date,
            "remaining_life_days": prediction.remaining_life_days,
            "estimated_cost": prediction.estimated_cost,
            "potential_savings": prediction.potential_savings,
            "model_id": str(prediction.model_id) if prediction.model_id else None,
            "acknowledged_at": prediction.acknowledged_at,
            "acknowledged_by": prediction.acknowledged_by,
            "work_order_ref": prediction.work_order_ref,
            "work_order_created_at": prediction.work_order_created_at,
            "work_order_claim": prediction.work_order_claim,
            "work_order_requested_at": prediction.work_order_requested_at,
            "dismissed_at": prediction.dismissed_at,
            "dismissed_by": prediction.dismissed_by,
            "dismissal_notes": prediction.dismissal_notes,
            "resolved_at": prediction.resolved_at,
            "resolution_notes": prediction.resolution_notes,
            "was_accurate": prediction.was_accurate,
            "actual_failure_date": prediction.actual_failure_date,
            "version": prediction.version,
            "created_at": prediction.created_at,
            "updated_at": prediction.updated_at,
        }

    def _to_entity(self, document: Dict[str, Any]) -> Prediction:
        """Convert a MongoDB document to a Prediction entity."""
        model_id = document.get("model_id")
        return Prediction(
            id=UUID(document["id"]),
            tenant_id=document["tenant_id"],
            asset_id=document["asset_id"],
            prediction_type=PredictionType(document["prediction_type"]),
            prediction_text=document.get("prediction_text") or "",
            probability=float(document.get("probability", 0.0)),
            confidence=float(document.get("confidence", 0.0)),
            low_confidence=bool(document.get("low_confidence", False)),
            risk_level=RiskLevel(document.get("risk_level", RiskLevel.LOW.value)),
            status=PredictionStatus(document.get("status", PredictionStatus.NEW.value)),
            factors=[
                Factor(
                    name=item["name"],
                    value=float(item.get("value", 0.0)),
                    contribution=float(item.get("contribution", 0.0)),
                    threshold=item.get("threshold"),
                    unit=item.get("unit"),
                    description=item.get("description"),
                )
                for item in document.get("factors") or []
            ],
            recommended_action=document.get("recommended_action"),
            predicted_date=document.get("predicted_date"),
            remaining_life_days=document.get("remaining_life_days"),
            estimated_cost=document.get("estimated_cost"),
            potential_savings=document.get("potential_savings"),
            model_id=UUID(model_id) if model_id else None,
            acknowledged_at=document.get("acknowledged_at"),
            acknowledged_by=document.get("acknowledged_by"),
            work_order_ref=document.get("work_order_ref"),
            work_order_created_at=document.get("work_order_created_at"),
            work_order_claim=document.get("work_order_claim"),
            work_order_requested_at=document.get("work_order_requested_at"),
            dismissed_at=document.get("dismissed_at"),
            dismissed_by=document.get("dismissed_by"),
            dismissal_notes=document.get("dismissal_notes"),
            resolved_at=document.get("resolved_at"),
            resolution_notes=document.get("resolution_notes"),
            was_accurate=document.get("was_accurate"),
            actual_failure_date=document.get("actual_failure_date"),
            version=int(document.get("version", 0)),
            created_at=document["created_at"],
            updated_at=document["updated_at"],
        )

    def _build_query(
        self,
        tenant_id: str,
        asset_id: Optional[str] = None,
        statuses: Optional[Iterable[PredictionStatus]] = None,
        prediction_type: Optional[PredictionType] = None,
        risk_level: Optional[RiskLevel] = None,
        model_id: Optional[UUID] = None,
        was_accurate: Optional[bool] = None,
        since: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {"tenant_id": tenant_id}
        if asset_id is not None:
            query["asset_id"] = asset_id
        if statuses is not None:
            query["status"] = {"$in": [status.value for status in statuses]}
        if prediction_type is not None:
            query["prediction_type"] = prediction_type.value
        if risk_level is not None:
            query["risk_level"] = risk_level.value
        if model_id is not None:
            query["model_id"] = str(model_id)
        if was_accurate is not None:
            query["was_accurate"] = was_accurate
        if since is not None:
            query["created_at"] = {"$gte": since}
        return query

    async def find_by_id(
        self, tenant_id: str, prediction_id: UUID
    ) -> Optional[Prediction]:
        try:
            document = await self.db.find_one(
                self.COLLECTION_NAME,
                {"tenant_id": tenant_id, "id": str(prediction_id)},
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to load prediction: {str(e)}")
        if document is None:
            return None
        return self._to_entity(document)

    async def find_open(
        self, tenant_id: str, asset_id: str, prediction_type: PredictionType
    ) -> Optional[Prediction]:
        try:
            documents = await self.db.find_many(
                self.COLLECTION_NAME,
                self._build_query(
                    tenant_id,
                    asset_id=asset_id,
                    statuses=OPEN_STATUSES,
                    prediction_type=prediction_type,
                ),
                sort_by="created_at",
                sort_direction=pymongo.DESCENDING,
                limit=1,
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to load open prediction: {str(e)}")
        if not documents:
            return None
        return self._to_entity(documents[0])

    async def create(self, prediction: Prediction) -> Prediction:
        """
        Insert a new prediction.

        Raises:
            DuplicateOpenPredictionError: If an open prediction already exists
                for the same key
            ModelOperationError: If the insert fails
        """
        try:
            await self.db.insert_one(
                self.COLLECTION_NAME, self._to_document(prediction)
            )
            return prediction
        except pymongo.errors.DuplicateKeyError:
            raise DuplicateOpenPredictionError(
                prediction.asset_id, prediction.prediction_type.value
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to create prediction: {str(e)}")

    async def compare_and_swap(
        self, prediction: Prediction, expected_version: int
    ) -> bool:
        try:
            return await self.db.compare_and_replace(
                self.COLLECTION_NAME,
                {"tenant_id": prediction.tenant_id, "id": str(prediction.id)},
                expected_version,
                self._to_document(prediction),
            )
        except pymongo.errors.DuplicateKeyError:
            raise DuplicateOpenPredictionError(
                prediction.asset_id, prediction.prediction_type.value
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to update prediction: {str(e)}")

    async def find_many(
        self,
        tenant_id: str,
        asset_id: Optional[str] = None,
        statuses: Optional[Iterable[PredictionStatus]] = None,
        prediction_type: Optional[PredictionType] = None,
        risk_level: Optional[RiskLevel] = None,
        since: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Prediction]:
        try:
            documents = await self.db.find_many(
                self.COLLECTION_NAME,
                self._build_query(
                    tenant_id,
                    asset_id=asset_id,
                    statuses=statuses,
                    prediction_type=prediction_type,
                    risk_level=risk_level,
                    since=since,
                ),
                sort_by="created_at",
                sort_direction=pymongo.DESCENDING,
                limit=limit,
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to list predictions: {str(e)}")
        return [self._to_entity(document) for document in documents]

    async def count(
        self,
        tenant_id: str,
        asset_id: Optional[str] = None,
        statuses: Optional[Iterable[PredictionStatus]] = None,
        prediction_type: Optional[PredictionType] = None,
        risk_level: Optional[RiskLevel] = None,
        model_id: Optional[UUID] = None,
        was_accurate: Optional[bool] = None,
        since: Optional[datetime] = None,
    ) -> int:
        try:
            return await self.db.count_documents(
                self.COLLECTION_NAME,
                self._build_query(
                    tenant_id,
                    asset_id=asset_id,
                    statuses=statuses,
                    prediction_type=prediction_type,
                    risk_level=risk_level,
                    model_id=model_id,
                    was_accurate=was_accurate,
                    since=since,
                ),
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to count predictions: {str(e)}")

    async def total_potential_savings(
        self, tenant_id: str, statuses: Iterable[PredictionStatus]
    ) -> float:
        try:
            documents = await self.db.find_many(
                self.COLLECTION_NAME,
                self._build_query(tenant_id, statuses=statuses),
                limit=0,
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to sum savings: {str(e)}")
        return float(
            sum(document.get("potential_savings") or 0.0 for document in documents)
        )
