"""Módulo de endpoints HTTP.

Contiene todos los endpoints del servicio organizados por función.
"""

from .dashboard import router as dashboard_router
from .health import router as health_router
from .subscriptions import router as subscriptions_router
from .thresholds import router as thresholds_router

__all__ = [
    "dashboard_router",
    "health_router",
    "subscriptions_router",
    "thresholds_router",
]
