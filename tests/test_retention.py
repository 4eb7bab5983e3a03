"""Tests del job de retención de lecturas."""

from datetime import datetime, timedelta, timezone

import pytest

from jobs.retention import run_once


def test_deletes_only_old_readings(reading_store):
    now = datetime(2026, 6, 1, tzinfo=timezone.utc)
    reading_store.insert("sensor-ph", 7.0, now - timedelta(days=120))
    reading_store.insert("sensor-ph", 7.5, now - timedelta(days=91))
    recent = reading_store.insert("sensor-ph", 8.0, now - timedelta(days=2))

    deleted = run_once(reading_store, days=90, now=now)

    assert deleted == 2
    remaining = reading_store.query_by_time_range(["sensor-ph"], now - timedelta(days=365), now)
    assert [r.id for r in remaining] == [recent.id]


def test_nothing_to_delete(reading_store):
    assert run_once(reading_store, days=30) == 0


def test_invalid_days(reading_store):
    with pytest.raises(ValueError):
        run_once(reading_store, days=0)
