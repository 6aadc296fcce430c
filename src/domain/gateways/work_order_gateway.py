"""
Domain Gateway - Work Orders

This module defines the gateway interface for raising work orders in the
external maintenance system.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities.asset import AssetInfo
from src.domain.entities.context import RequestContext
from src.domain.entities.prediction import Prediction


class IWorkOrderGateway(ABC):
    """Interface for the work-order gateway."""

    @abstractmethod
    async def create_from_prediction(
        self,
        context: RequestContext,
        prediction: Prediction,
        priority: str,
        asset: Optional[AssetInfo] = None,
    ) -> str:
        """
        Raise a predictive work order for a prediction.

        The work-order system later calls back ``resolve`` on the prediction
        once the work order is completed.

        Args:
            context: Tenant and actor of the call
            prediction: Prediction the work order addresses
            priority: Work order priority derived from the risk level
            asset: Resolved asset data used to enrich the work order

        Returns:
            Reference of the created work order

        Raises:
            WorkOrderGatewayError: When the work order cannot be created
        """
        pass
