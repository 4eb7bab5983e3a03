"""Job de retención: borra lecturas más viejas que N días.

Uso:
    python -m jobs.retention --once
    python -m jobs.retention --days 30 --sleep-seconds 3600
"""

from __future__ import annotations

import argparse
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from common.config import get_settings
from common.db import get_engine

from farm_ingest.repository.interfaces import ReadingStore
from farm_ingest.repository.readings import SqlReadingStore

logger = logging.getLogger(__name__)


def run_once(store: ReadingStore, days: int, now: Optional[datetime] = None) -> int:
    """Borra lecturas con timestamp < now - days. Devuelve la cantidad borrada."""
    if days < 1:
        raise ValueError("retention days must be >= 1")
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    deleted = store.delete_older_than(cutoff)
    logger.info("[RETENTION] cutoff=%s deleted=%d", cutoff.isoformat(), deleted)
    return deleted


def main(argv: Optional[list[str]] = None) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Sensor reading retention cleanup")
    p.add_argument("--days", type=int, default=settings.reading_retention_days)
    p.add_argument("--sleep-seconds", type=float, default=3600.0)
    p.add_argument("--once", action="store_true", help="run a single iteration and exit")
    args = p.parse_args(argv)

    store = SqlReadingStore(get_engine())
    logger.info("[RETENTION] started days=%d sleep=%.1fs", args.days, args.sleep_seconds)

    while True:
        try:
            run_once(store, args.days)
            if args.once:
                return
            time.sleep(args.sleep_seconds)
        except Exception as e:
            logger.error("[RETENTION] Error en iteración: %s", e)
            if args.once:
                raise
            time.sleep(args.sleep_seconds)


if __name__ == "__main__":
    main()
