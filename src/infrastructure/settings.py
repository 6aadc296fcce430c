"""Infrastructure-level configuration helpers for background workers."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class _DatabaseSettings(BaseSettings):
    mongo_uri: str = Field(
        default="mongodb://localhost:27017/predictive_db",
        validation_alias=AliasChoices("DB_MONGO_URI", "MONGO_URI"),
        description="MongoDB connection URI",
    )
    database_name: str = Field(
        default="predictive_db",
        validation_alias=AliasChoices("DB_DATABASE_NAME", "DATABASE_NAME"),
        description="MongoDB database name",
    )

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


class _CollaboratorSettings(BaseSettings):
    metric_store_url: str = Field(
        default="http://localhost:8081",
        validation_alias=AliasChoices("COLLAB_METRIC_STORE_URL", "METRIC_STORE_URL"),
        description="Metric store base URL",
    )
    work_order_url: str = Field(
        default="http://localhost:8082",
        validation_alias=AliasChoices("COLLAB_WORK_ORDER_URL", "WORK_ORDER_URL"),
        description="Work-order system base URL",
    )
    asset_registry_url: str = Field(
        default="http://localhost:8083",
        validation_alias=AliasChoices(
            "COLLAB_ASSET_REGISTRY_URL", "ASSET_REGISTRY_URL"
        ),
        description="Asset registry base URL",
    )
    timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("COLLAB_TIMEOUT", "COLLABORATOR_TIMEOUT"),
        description="HTTP timeout in seconds for collaborator calls",
    )

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


class _ScoringSettings(BaseSettings):
    lookback_days: int = Field(
        default=30,
        validation_alias=AliasChoices("SCORING_LOOKBACK_DAYS", "LOOKBACK_DAYS"),
        description="Days of telemetry fed to each scoring run",
    )
    monitored_window_hours: int = Field(
        default=24,
        validation_alias=AliasChoices(
            "SCORING_MONITORED_WINDOW_HOURS", "MONITORED_WINDOW_HOURS"
        ),
        description="Assets with readings in this window are scheduled",
    )
    failure_horizon_days: int = Field(
        default=90,
        validation_alias=AliasChoices(
            "SCORING_FAILURE_HORIZON_DAYS", "FAILURE_HORIZON_DAYS"
        ),
        description="Window for counting recent work orders of an asset",
    )
    lock_retries: int = Field(
        default=5,
        validation_alias=AliasChoices("SCORING_LOCK_RETRIES", "LOCK_RETRIES"),
        description="Compare-and-swap attempts before a write gives up",
    )

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


class InfrastructureSettings(BaseSettings):
    database: _DatabaseSettings = Field(default_factory=_DatabaseSettings)
    collaborators: _CollaboratorSettings = Field(default_factory=_CollaboratorSettings)
    scoring: _ScoringSettings = Field(default_factory=_ScoringSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


_settings: InfrastructureSettings | None = None


def get_settings() -> InfrastructureSettings:
    """Lazy-load infrastructure settings for Celery workers."""
    global _settings
    if _settings is None:
        _settings = InfrastructureSettings()
    return _settings
