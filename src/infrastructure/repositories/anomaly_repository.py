"""
MongoDB Anomaly Repository - Infrastructure Layer

Append-only storage for anomalies flagged by scoring runs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

import pymongo
import pymongo.errors

from src.domain.entities.anomaly import Anomaly, DetectionMethod, reading_instant
from src.domain.entities.errors import DuplicateAnomalyError, ModelOperationError
from src.domain.entities.risk import RiskLevel
from src.domain.entities.telemetry import SensorType
from src.domain.repositories.anomaly_repository import IAnomalyRepository
from src.infrastructure.database import ANOMALIES_COLLECTION, MongoDatabase


class AnomalyRepository(IAnomalyRepository):
    """MongoDB implementation of the AnomalyRepository."""

    COLLECTION_NAME = ANOMALIES_COLLECTION

    def __init__(self, mongo_database: MongoDatabase):
        self.db = mongo_database

    def _to_document(self, anomaly: Anomaly) -> Dict[str, Any]:
        return {
            "id": str(anomaly.id),
            "tenant_id": anomaly.tenant_id,
            "asset_id": anomaly.asset_id,
            "sensor_type": anomaly.sensor_type.value,
            "value": anomaly.value,
            "unit": anomaly.unit,
            "z_score": anomaly.z_score,
            "severity": anomaly.severity.value,
            "method": anomaly.method.value,
            "baseline_mean": anomaly.baseline_mean,
            "baseline_std_dev": anomaly.baseline_std_dev,
            "baseline_size": anomaly.baseline_size,
            "lower_bound": anomaly.lower_bound,
            "upper_bound": anomaly.upper_bound,
            "message": anomaly.message,
            "timestamp": reading_instant(anomaly.timestamp),
            "created_at": anomaly.created_at,
        }

    def _to_entity(self, document: Dict[str, Any]) -> Anomaly:
        return Anomaly(
            id=UUID(document["id"]),
            tenant_id=document["tenant_id"],
            asset_id=document["asset_id"],
            sensor_type=SensorType(document["sensor_type"]),
            value=float(document["value"]),
            unit=document.get("unit"),
            z_score=document.get("z_score"),
            severity=RiskLevel(document["severity"]),
            method=DetectionMethod(document.get("method", DetectionMethod.Z_SCORE.value)),
            baseline_mean=float(document.get("baseline_mean", 0.0)),
            baseline_std_dev=float(document.get("baseline_std_dev", 0.0)),
            baseline_size=int(document.get("baseline_size", 0)),
            lower_bound=document.get("lower_bound"),
            upper_bound=document.get("upper_bound"),
            message=document.get("message"),
            timestamp=document["timestamp"],
            created_at=document["created_at"],
        )

    async def add(self, anomaly: Anomaly) -> Anomaly:
        if not anomaly.tenant_id:
            raise ModelOperationError("Anomaly has no tenant")
        try:
            await self.db.insert_one(self.COLLECTION_NAME, self._to_document(anomaly))
            return anomaly
        except pymongo.errors.DuplicateKeyError:
            raise DuplicateAnomalyError(
                anomaly.asset_id,
                anomaly.sensor_type.value,
                reading_instant(anomaly.timestamp).isoformat(),
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to record anomaly: {str(e)}")

    async def recorded_timestamps(
        self,
        tenant_id: str,
        asset_id: str,
        sensor_type: SensorType,
        since: datetime,
    ) -> Set[datetime]:
        query: Dict[str, Any] = {
            "tenant_id": tenant_id,
            "asset_id": asset_id,
            "sensor_type": sensor_type.value,
            "timestamp": {"$gte": reading_instant(since)},
        }
        try:
            documents = await self.db.find_many(self.COLLECTION_NAME, query, limit=0)
        except Exception as e:
            raise ModelOperationError(f"Failed to list anomalies: {str(e)}")
        return {reading_instant(document["timestamp"]) for document in documents}

    async def find_recent(
        self,
        tenant_id: str,
        limit: int = 50,
        asset_id: Optional[str] = None,
        severity: Optional[RiskLevel] = None,
    ) -> List[Anomaly]:
        query: Dict[str, Any] = {"tenant_id": tenant_id}
        if asset_id is not None:
            query["asset_id"] = asset_id
        if severity is not None:
            query["severity"] = severity.value
        try:
            documents = await self.db.find_many(
                self.COLLECTION_NAME,
                query,
                sort_by="timestamp",
                sort_direction=pymongo.DESCENDING,
                limit=limit,
            )
        except Exception as e:
            raise ModelOperationError(f"Failed to list anomalies: {str(e)}")
        return [self._to_entity(document) for document in documents]

    async def count(
        self,
        tenant_id: str,
        asset_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> int:
        query: Dict[str, Any] = {"tenant_id": tenant_id}
        if asset_id is not None:
            query["asset_id"] = asset_id
        if since is not None:
            query["timestamp"] = {"$gte": since}
        try:
            return await self.db.count_documents(self.COLLECTION_NAME, query)
        except Exception as e:
            raise ModelOperationError(f"Failed to count anomalies: {str(e)}")
