"""
Health domain entities.

This module defines value objects for representing service health
and application observability information across the system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ServiceStatus(str, Enum):
    """High-level availability for a dependency or the system."""

    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class DependencyStatus:
    """
    Health status for a single external dependency.

    Non-critical dependencies (the HTTP collaborators) only degrade the
    system when they are down; critical ones take it down.
    """

    name: str
    status: ServiceStatus
    message: Optional[str] = None
    critical: bool = True
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    latency_ms: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def effective_status(self) -> ServiceStatus:
        if not self.critical and self.status == ServiceStatus.DOWN:
            return ServiceStatus.DEGRADED
        return self.status


@dataclass(slots=True)
class SystemHealth:
    """Aggregated health for the engine."""

    status: ServiceStatus
    dependencies: List[DependencyStatus] = field(default_factory=list)


@dataclass(slots=True)
class ApplicationInfo:
    """Operational metadata surfaced by the /info endpoint."""

    name: str
    description: str
    version: str
    environment: str
    git_commit: str
    build_time: str
    started_at: datetime
    uptime_seconds: float
    status: ServiceStatus
    dependencies: List[DependencyStatus] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)
