"""
Gateways Package - Infrastructure Layer

This package contains concrete implementations of the gateway
interfaces defined in the domain layer. These implementations
handle the details of external service communications.
"""

from .asset_registry_gateway import AssetRegistryGateway
from .metric_store_gateway import MetricStoreGateway
from .work_order_gateway import WorkOrderGateway

__all__ = ["AssetRegistryGateway", "MetricStoreGateway", "WorkOrderGateway"]
