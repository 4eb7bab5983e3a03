"""Router de ingesta y estadísticas de procesamiento."""

from .router import IngestionRouter, IngestResult
from .stats import Stats

__all__ = ["IngestionRouter", "IngestResult", "Stats"]
