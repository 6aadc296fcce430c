"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
to simplify the management and lifecycle of dependencies
in the application.
"""

from contextlib import asynccontextmanager

from dependency_injector import containers, providers

from src.application.models import SystemInfo
from src.application.use_cases.dashboard_use_cases import (
    GetAnomaliesUseCase,
    GetDashboardSummaryUseCase,
)
from src.application.use_cases.health_use_cases import (
    GetApplicationInfoUseCase,
    GetHealthStatusUseCase,
)
from src.application.use_cases.model_use_cases import (
    CreateModelUseCase,
    GetModelsUseCase,
    ModelRegistry,
    TrainModelUseCase,
)
from src.application.use_cases.prediction_lifecycle import PredictionLifecycleManager
from src.application.use_cases.prediction_use_cases import (
    AcknowledgePredictionUseCase,
    DismissPredictionUseCase,
    GenerateWorkOrderUseCase,
    GetPredictionsUseCase,
    ResolvePredictionUseCase,
)
from src.application.use_cases.scoring_dispatch_use_case import (
    DispatchScoringRunUseCase,
)
from src.application.use_cases.scoring_use_case import AssetScoringUseCase
from src.infrastructure.database import MongoDatabase
from src.infrastructure.gateways import (
    AssetRegistryGateway,
    MetricStoreGateway,
    WorkOrderGateway,
)
from src.infrastructure.repositories import (
    AnomalyRepository,
    ModelRepository,
    PredictionRepository,
)
from src.infrastructure.services.celery_config import SCORING_QUEUE
from src.infrastructure.services.health_check_service import HealthCheckService
from src.infrastructure.services.scoring_dispatcher import CeleryScoringDispatcher
from src.shared import get_logger

from .config import AppSettings

logger = get_logger(__name__)


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependecy-injector."""

    wiring_config = containers.WiringConfiguration(
        packages=["..presentation", "..application"]
    )

    # Settings
    config = providers.Configuration()
    # Infrastructure
    mongo_database = providers.Singleton(
        MongoDatabase,
        mongo_uri=config.database.mongo_uri,
        db_name=config.database.database_name,
    )

    model_repository = providers.Singleton(
        ModelRepository,
        mongo_database=mongo_database,
    )

    prediction_repository = providers.Singleton(
        PredictionRepository,
        mongo_database=mongo_database,
    )

    anomaly_repository = providers.Singleton(
        AnomalyRepository,
        mongo_database=mongo_database,
    )

    # Gateways
    metric_store_gateway = providers.Singleton(
        MetricStoreGateway,
        base_url=config.collaborators.metric_store_url,
        timeout=config.collaborators.timeout,
    )

    work_order_gateway = providers.Singleton(
        WorkOrderGateway,
        base_url=config.collaborators.work_order_url,
        timeout=config.collaborators.timeout,
    )

    asset_registry_gateway = providers.Singleton(
        AssetRegistryGateway,
        base_url=config.collaborators.asset_registry_url,
        timeout=config.collaborators.timeout,
    )

    # Background dispatch
    scoring_dispatcher = providers.Singleton(
        CeleryScoringDispatcher,
        queue_name=SCORING_QUEUE,
    )

    # Application services
    prediction_lifecycle = providers.Singleton(
        PredictionLifecycleManager,
        prediction_repository=prediction_repository,
        max_attempts=config.scoring.lock_retries,
    )

    model_registry = providers.Singleton(
        ModelRegistry,
        model_repository=model_repository,
    )

    # Application (use cases)
    asset_scoring_use_case = providers.Factory(
        AssetScoringUseCase,
        metric_store=metric_store_gateway,
        asset_registry=asset_registry_gateway,
        model_registry=model_registry,
        lifecycle=prediction_lifecycle,
        anomaly_repository=anomaly_repository,
        prediction_repository=prediction_repository,
        lookback_days=config.scoring.lookback_days,
        work_order_window_days=config.scoring.failure_horizon_days,
        scan_window_hours=config.scoring.monitored_window_hours,
    )

    dispatch_scoring_run_use_case = providers.Factory(
        DispatchScoringRunUseCase,
        scoring_dispatcher=scoring_dispatcher,
    )

    get_models_use_case = providers.Factory(
        GetModelsUseCase,
        model_repository=model_repository,
    )

    create_model_use_case = providers.Factory(
        CreateModelUseCase,
        model_repository=model_repository,
    )

    train_model_use_case = providers.Factory(
        TrainModelUseCase,
        model_repository=model_repository,
        prediction_repository=prediction_repository,
        metric_store=metric_store_gateway,
        asset_registry=asset_registry_gateway,
        model_registry=model_registry,
    )

    acknowledge_prediction_use_case = providers.Factory(
        AcknowledgePredictionUseCase,
        lifecycle=prediction_lifecycle,
    )

    dismiss_prediction_use_case = providers.Factory(
        DismissPredictionUseCase,
        lifecycle=prediction_lifecycle,
    )

    resolve_prediction_use_case = providers.Factory(
        ResolvePredictionUseCase,
        lifecycle=prediction_lifecycle,
    )

    generate_work_order_use_case = providers.Factory(
        GenerateWorkOrderUseCase,
        lifecycle=prediction_lifecycle,
        work_order_gateway=work_order_gateway,
        asset_registry=asset_registry_gateway,
    )

    get_predictions_use_case = providers.Factory(
        GetPredictionsUseCase,
        prediction_repository=prediction_repository,
    )

    get_dashboard_summary_use_case = providers.Factory(
        GetDashboardSummaryUseCase,
        prediction_repository=prediction_repository,
        anomaly_repository=anomaly_repository,
        model_repository=model_repository,
        metric_store=metric_store_gateway,
        asset_registry=asset_registry_gateway,
    )

    get_anomalies_use_case = providers.Factory(
        GetAnomaliesUseCase,
        anomaly_repository=anomaly_repository,
    )

    health_check_service = providers.Singleton(
        HealthCheckService,
        mongo_database=mongo_database,
        broker_url=config.celery.broker_url,
        redis_url=config.celery.result_backend_url,
        metric_store_url=config.collaborators.metric_store_url,
        work_order_url=config.collaborators.work_order_url,
        asset_registry_url=config.collaborators.asset_registry_url,
    )

    system_info = providers.Singleton(
        SystemInfo,
        title=config.service.title,
        description=config.service.description,
        version=config.service.version,
        environment=providers.Callable(
            lambda env: env.value if hasattr(env, "value") else str(env),
            config.environment,
        ),
        git_commit=config.service.git_commit,
        build_time=config.service.build_time,
        celery_broker_url=config.celery.broker_url,
        celery_result_backend_url=config.celery.result_backend_url,
        metric_store_url=config.collaborators.metric_store_url,
        work_order_url=config.collaborators.work_order_url,
        asset_registry_url=config.collaborators.asset_registry_url,
    )

    get_health_status_use_case = providers.Factory(
        GetHealthStatusUseCase,
        health_check_service=health_check_service,
    )

    get_application_info_use_case = providers.Factory(
        GetApplicationInfoUseCase,
        health_check_service=health_check_service,
        system_info=system_info,
    )


# -------------------------
# Global Container Instance
# -------------------------
_app_container: AppContainer | None = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container


@asynccontextmanager
async def app_lifespan():
    """
    Centralized lifecycle management for external resources.

    Creates the MongoDB indexes (including the partial unique index that
    keeps one open prediction per asset and type) on startup and closes the
    client on shutdown. Startup fails when a unique index the repositories
    rely on cannot be built.
    """
    container = get_container()
    mongo_database = container.mongo_database()

    try:
        logger.info("container.mongo.ensure_connection")
        await mongo_database.create_indexes()
        logger.info("container.resources.initialized")
        yield container
    finally:
        logger.info("container.mongo.close")
        mongo_database.close()
        logger.info("container.resources.shutdown")
