"""Repositorios sobre SQLAlchemy Core.

thresholds.py se importa directo desde su módulo (depende de classification/).
"""

from .interfaces import ReadingStore, SensorStore
from .readings import SqlReadingStore
from .sensors import SqlSensorStore

__all__ = ["ReadingStore", "SensorStore", "SqlReadingStore", "SqlSensorStore"]
