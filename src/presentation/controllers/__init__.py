"""
Controllers Package - Presentation Layer

This package contains FastAPI controllers (routers) that handle
HTTP requests and responses. Controllers build the request context,
map domain errors to HTTP status codes and delegate to use cases.
"""

from .predictive_controller import router as predictive_router
from .system_controller import router as system_router

__all__ = ["predictive_router", "system_router"]
