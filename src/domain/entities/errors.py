"""
Domain Errors

This module defines custom error classes for domain-specific exceptions.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ModelNotFoundError(DomainError):
    """Raised when a model cannot be found."""

    def __init__(self, model_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"Model with ID {model_id} not found"
        super().__init__(message, details)


class ActiveModelNotFoundError(ModelNotFoundError):
    """Raised when no active model governs an (asset type, model type) pair."""

    def __init__(self, asset_type: str, model_type: str):
        DomainError.__init__(
            self,
            f"No active {model_type} model for asset type '{asset_type}'",
            {"asset_type": asset_type, "model_type": model_type},
        )


class ModelValidationError(DomainError):
    """Raised when model validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ModelOperationError(DomainError):
    """Raised when an operation on a model fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ModelConfigurationError(DomainError):
    """Raised when model parameters cannot drive an estimator."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InsufficientDataError(DomainError):
    """Raised when a detector does not have enough readings to decide."""

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient data: {available} readings available, {required} required",
            {"required": required, "available": available},
        )
        self.required = required
        self.available = available


class PredictionNotFoundError(DomainError):
    """Raised when a prediction cannot be found for the tenant."""

    def __init__(self, prediction_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"Prediction with ID {prediction_id} not found"
        super().__init__(message, details)


class InvalidTransitionError(DomainError):
    """Raised when a lifecycle transition is not legal from the current state."""

    def __init__(self, prediction_id: str, current_status: str, target_status: str):
        super().__init__(
            f"Cannot move prediction {prediction_id} from "
            f"'{current_status}' to '{target_status}'",
            {
                "prediction_id": prediction_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )
        self.current_status = current_status
        self.target_status = target_status


class ConcurrentUpdateError(DomainError):
    """Raised when a prediction keeps changing underneath a writer."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AssetNotFoundError(DomainError):
    """Raised when the asset registry does not know an asset."""

    def __init__(self, asset_id: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Asset with ID {asset_id} not found", details)


class DuplicateOpenPredictionError(DomainError):
    """Raised by storage when an open prediction already exists for the key."""

    def __init__(self, asset_id: str, prediction_type: str):
        super().__init__(
            f"An open {prediction_type} prediction already exists for asset {asset_id}",
            {"asset_id": asset_id, "prediction_type": prediction_type},
        )


class DuplicateAnomalyError(DomainError):
    """Raised by storage when the reading already has a recorded anomaly."""

    def __init__(self, asset_id: str, sensor_type: str, timestamp: str):
        super().__init__(
            f"Reading {sensor_type} of asset {asset_id} at {timestamp} "
            "already has an anomaly",
            {"asset_id": asset_id, "sensor_type": sensor_type, "timestamp": timestamp},
        )


class GatewayError(DomainError):
    """Raised when an external collaborator cannot serve a request."""

    pass


class MetricStoreError(GatewayError):
    """Raised when metric store operations fail."""

    pass


class WorkOrderGatewayError(GatewayError):
    """Raised when the work-order system rejects or misses a request."""

    pass


class AssetRegistryError(GatewayError):
    """Raised when asset registry operations fail."""

    pass
