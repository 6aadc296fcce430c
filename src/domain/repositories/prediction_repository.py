"""
Prediction Repository Interface

This module defines the interface for prediction repositories following
the repository pattern. Implementations must uphold the at-most-one-open
prediction invariant per (tenant, asset, prediction type) and support
optimistic concurrency through the ``version`` field.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from src.domain.entities.prediction import (
    Prediction,
    PredictionStatus,
    PredictionType,
)
from src.domain.entities.risk import RiskLevel


class IPredictionRepository(ABC):
    """Interface for Prediction repository implementations."""

    @abstractmethod
    async def find_by_id(
        self, tenant_id: str, prediction_id: UUID
    ) -> Optional[Prediction]:
        """
        Find a prediction by its ID within a tenant.

        Args:
            tenant_id: Tenant owning the prediction
            prediction_id: The unique identifier of the prediction

        Returns:
            The prediction if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_open(
        self, tenant_id: str, asset_id: str, prediction_type: PredictionType
    ) -> Optional[Prediction]:
        """
        Find the open (new or acknowledged) prediction for an asset and type.

        Args:
            tenant_id: Tenant owning the asset
            asset_id: Asset identifier
            prediction_type: Kind of prediction

        Returns:
            The open prediction if one exists, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, prediction: Prediction) -> Prediction:
        """
        Persist a new prediction.

        Args:
            prediction: The prediction to create

        Returns:
            The created prediction

        Raises:
            DuplicateOpenPredictionError: If an open prediction already exists
                for the same tenant, asset and type
            ModelOperationError: If the insert fails
        """
        pass

    @abstractmethod
    async def compare_and_swap(
        self, prediction: Prediction, expected_version: int
    ) -> bool:
        """
        Replace the stored prediction only if its version still matches.

        On success the stored document carries ``expected_version + 1`` and
        ``prediction.version`` is updated accordingly.

        Args:
            prediction: The prediction with its new field values
            expected_version: Version read before the mutation

        Returns:
            True when the write happened, False when another writer won
        """
        pass

    @abstractmethod
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
        """
        Find predictions matching the filters, newest first.

        Args:
            tenant_id: Tenant owning the predictions
            asset_id: Filter by asset
            statuses: Filter by any of these statuses
            prediction_type: Filter by prediction type
            risk_level: Filter by risk level
            since: Only predictions created at or after this instant
            limit: Maximum number of predictions to return, 0 for no limit

        Returns:
            List of predictions ordered by creation time descending
        """
        pass

    @abstractmethod
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
        """Count predictions matching the filters."""
        pass

    @abstractmethod
    async def total_potential_savings(
        self, tenant_id: str, statuses: Iterable[PredictionStatus]
    ) -> float:
        """Sum of ``potential_savings`` over the predictions in ``statuses``."""
        pass
