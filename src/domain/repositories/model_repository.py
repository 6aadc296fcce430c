"""
Model Repository Interface

This module defines the interface for model repositories following
the repository pattern. It abstracts the data access operations
for model entities, decoupling them from specific implementations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.domain.entities.model import Model, ModelStatus, ModelType


class IModelRepository(ABC):
    """Interface for Model repository implementations."""

    @abstractmethod
    async def find_by_id(self, tenant_id: str, model_id: UUID) -> Optional[Model]:
        """
        Find a model by its ID.

        Args:
            tenant_id: Tenant owning the model
            model_id: The unique identifier of the model to find

        Returns:
            The model if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_all(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        asset_type: Optional[str] = None,
        model_type: Optional[ModelType] = None,
        status: Optional[ModelStatus] = None,
    ) -> List[Model]:
        """
        Find the tenant's models with pagination and filtering options.

        Args:
            tenant_id: Tenant owning the models
            skip: Number of records to skip (for pagination)
            limit: Maximum number of records to return
            asset_type: Filter by asset type
            model_type: Filter by model type
            status: Filter by model status

        Returns:
            List of models matching the criteria, newest first
        """
        pass

    @abstractmethod
    async def find_active(
        self, tenant_id: str, asset_type: str, model_type: ModelType
    ) -> Optional[Model]:
        """
        Find the model governing an asset type for one estimator.

        When several active models match, the most recently updated wins.

        Returns:
            The active model if any, None otherwise
        """
        pass

    @abstractmethod
    async def list_active_tenants(self) -> List[str]:
        """Tenants that own at least one active model."""
        pass

    @abstractmethod
    async def create(self, model: Model) -> Model:
        """
        Create a new model.

        Args:
            model: The model to create

        Returns:
            The created model with any generated fields populated
        """
        pass

    @abstractmethod
    async def update(self, model: Model) -> Model:
        """
        Update an existing model.

        Args:
            model: The model with updated fields

        Returns:
            The updated model

        Raises:
            ModelNotFoundError: If the model does not exist
        """
        pass
