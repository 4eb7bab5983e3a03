"""Estadísticas de procesamiento del router de ingesta."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Stats:
    """Contadores de mensajes. `dropped` agrupa los descartes por motivo."""

    received: int = 0
    processed: int = 0
    failed: int = 0
    dropped: dict[str, int] = field(default_factory=dict)
    last_message_at: float = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_received(self) -> None:
        with self._lock:
            self.received += 1
            self.last_message_at = time.time()

    def record_processed(self) -> None:
        with self._lock:
            self.processed += 1

    def record_dropped(self, reason: str) -> None:
        with self._lock:
            self.failed += 1
            self.dropped[reason] = self.dropped.get(reason, 0) + 1

    def __str__(self) -> str:
        return f"Stats: received={self.received} processed={self.processed} failed={self.failed}"

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        with self._lock:
            return {
                "received": self.received,
                "processed": self.processed,
                "failed": self.failed,
                "dropped": dict(self.dropped),
                "last_message_at": self.last_message_at,
                "started_at": self.started_at.isoformat(),
                "success_rate": self._success_rate(),
            }

    def _success_rate(self) -> float:
        total = self.processed + self.failed
        if total == 0:
            return 1.0
        return self.processed / total
