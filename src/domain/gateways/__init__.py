"""
Gateways Package - Domain Layer

This package contains interfaces defining gateway contracts
for external service communications. Specific implementations
are provided by the infrastructure layer.
"""

from .asset_registry_gateway import IAssetRegistryGateway
from .metric_store_gateway import IMetricStoreGateway
from .work_order_gateway import IWorkOrderGateway

__all__ = ["IAssetRegistryGateway", "IMetricStoreGateway", "IWorkOrderGateway"]
