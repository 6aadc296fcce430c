"""System endpoints exposing dependency health and build information."""

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from src.application.dtos.health_dto import ApplicationInfoDTO, SystemHealthDTO
from src.application.use_cases.health_use_cases import (
    GetApplicationInfoUseCase,
    GetHealthStatusUseCase,
)
from src.domain.entities.health import ServiceStatus
from src.shared import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=SystemHealthDTO)
@inject
async def health(
    response: Response,
    get_health_status_use_case: GetHealthStatusUseCase = Depends(
        Provide["get_health_status_use_case"]
    ),
) -> SystemHealthDTO:
    """
    Status of MongoDB, RabbitMQ, Redis and the HTTP collaborators.

    Answers 503 while a critical dependency is down so that orchestrators can
    take the instance out of rotation.
    """
    try:
        health_status = await get_health_status_use_case.execute()
    except Exception as exc:
        logger.error("health.check.failed", error=str(exc), exc_info=exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to retrieve system health status",
        ) from exc

    if health_status.status == ServiceStatus.DOWN:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "health.check.down",
            down=[
                dependency.name
                for dependency in health_status.dependencies
                if dependency.status == ServiceStatus.DOWN
            ],
        )
    else:
        logger.debug("health.check.completed", status=health_status.status.value)
    return health_status


@router.get("/info", response_model=ApplicationInfoDTO)
@inject
async def info(
    request: Request,
    get_application_info_use_case: GetApplicationInfoUseCase = Depends(
        Provide["get_application_info_use_case"]
    ),
) -> ApplicationInfoDTO:
    """Build metadata, uptime and collaborator endpoints of the engine."""
    started_at = getattr(request.app.state, "started_at", None)
    try:
        return await get_application_info_use_case.execute(started_at)
    except Exception as exc:
        logger.error("info.fetch_failed", error=str(exc), exc_info=exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to retrieve application info",
        ) from exc
