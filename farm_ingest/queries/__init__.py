"""Consultas de lectura para el dashboard."""

from .dashboard import DashboardService, DashboardSummary, SensorSeries

__all__ = ["DashboardService", "DashboardSummary", "SensorSeries"]
