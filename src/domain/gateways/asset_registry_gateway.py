"""
Domain Gateway - Asset Registry

This module defines the gateway interface for resolving asset data owned by
the external asset registry.
"""

from abc import ABC, abstractmethod
from typing import List

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext


class IAssetRegistryGateway(ABC):
    """Interface for the asset registry gateway."""

    @abstractmethod
    async def resolve(self, context: RequestContext, asset_id: str) -> AssetInfo:
        """
        Resolve an asset identifier into its display and condition data.

        Raises:
            AssetNotFoundError: When the registry does not know the asset
            AssetRegistryError: When the registry cannot be reached
        """
        pass

    @abstractmethod
    async def list_by_type(
        self, context: RequestContext, asset_type: str
    ) -> List[AssetInfo]:
        """
        List the tenant's assets of a given type.

        Raises:
            AssetRegistryError: When the registry cannot be reached
        """
        pass
