"""Domain service helpers for validating model configurations."""

from typing import List

from src.domain.entities.errors import ModelValidationError
from src.domain.entities.model import Model, ModelParameters, ModelType

MIN_WINDOW_SIZE = 5


def _validate_anomaly_parameters(params: ModelParameters, errors: List[str]) -> None:
    if params.window_size < MIN_WINDOW_SIZE:
        errors.append(f"Window size must be at least {MIN_WINDOW_SIZE} readings.")
    if params.z_score_threshold <= 0:
        errors.append("Z-score threshold must be greater than 0.")
    if params.iqr_multiplier <= 0:
        errors.append("IQR multiplier must be greater than 0.")


def _validate_smoothing_parameters(params: ModelParameters, errors: List[str]) -> None:
    if not 0.0 < params.alpha <= 1.0:
        errors.append("Smoothing constant alpha must be greater than 0 and at most 1.")
    if not 0.0 <= params.beta <= 1.0:
        errors.append("Trend constant beta must be between 0 and 1 (inclusive).")
    if params.degradation_threshold <= 0:
        errors.append("Degradation threshold must be greater than 0.")


def _validate_weibull_parameters(params: ModelParameters, errors: List[str]) -> None:
    if params.weibull_shape <= 0:
        errors.append("Weibull shape must be greater than 0.")
    if params.weibull_scale_hours <= 0:
        errors.append("Weibull scale must be greater than 0 hours.")


def collect_parameter_errors(
    params: ModelParameters, model_type: ModelType
) -> List[str]:
    """Return every rule the parameters break for the given model type."""

    errors: List[str] = []
    if params.min_data_points <= 0:
        errors.append("Minimum data points must be greater than 0.")

    if model_type == ModelType.ANOMALY_DETECTION:
        _validate_anomaly_parameters(params, errors)
    elif model_type == ModelType.FAILURE_PREDICTION:
        _validate_smoothing_parameters(params, errors)
    elif model_type == ModelType.REMAINING_LIFE:
        _validate_weibull_parameters(params, errors)
    return errors


def validate_model_configuration(model: Model) -> None:
    """Validate a model's parameters and registration data.

    Raises:
        ModelValidationError: If one or more validation rules fail.
    """

    errors = collect_parameter_errors(model.parameters, model.model_type)

    if not model.name or not model.name.strip():
        errors.append("Model name must be provided.")
    if not model.asset_type or not model.asset_type.strip():
        errors.append("Asset type must be provided.")
    if not model.tenant_id:
        errors.append("Tenant must be provided.")

    if errors:
        raise ModelValidationError(
            "Model configuration is invalid.", details={"errors": errors}
        )
