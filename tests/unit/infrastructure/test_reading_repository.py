from datetime import datetime, timedelta, timezone

import pytest

from app.enums import PumpState

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _append(repo, captured_at, soil=40.0, pump="off"):
    return repo.append(
        soil_humidity=soil,
        temperature=20.0,
        air_humidity=50.0,
        pump_status=pump,
        captured_at=captured_at,
    )


def test_latest_is_none_when_empty(reading_repo):
    assert reading_repo.latest() is None
    assert reading_repo.count() == 0


def test_append_then_latest_returns_fields(reading_repo):
    reading_id = reading_repo.append(
        soil_humidity=33.5,
        temperature=22.1,
        air_humidity=61.0,
        pump_status="on",
        captured_at=T0,
    )

    latest = reading_repo.latest()
    assert latest is not None
    assert latest.id == reading_id
    assert latest.soil_humidity == 33.5
    assert latest.temperature == 22.1
    assert latest.air_humidity == 61.0
    assert latest.pump_status is PumpState.ON
    assert latest.captured_at == T0


def test_ids_are_unique_and_increasing(reading_repo):
    first = _append(reading_repo, T0)
    second = _append(reading_repo, T0)
    assert second > first


def test_latest_orders_by_capture_time_not_insertion(reading_repo):
    _append(reading_repo, T0, soil=10.0)
    _append(reading_repo, T0 - timedelta(hours=1), soil=99.0)  # late arrival from a drifting clock

    assert reading_repo.latest().soil_humidity == 10.0


def test_latest_breaks_capture_time_ties_by_id(reading_repo):
    _append(reading_repo, T0, soil=10.0)
    newer = _append(reading_repo, T0, soil=20.0)

    latest = reading_repo.latest()
    assert latest.id == newer
    assert latest.soil_humidity == 20.0


def test_between_is_inclusive_and_ascending(reading_repo):
    _append(reading_repo, T0 - timedelta(hours=3), soil=1.0)
    _append(reading_repo, T0, soil=4.0)
    _append(reading_repo, T0 - timedelta(hours=2), soil=2.0)
    _append(reading_repo, T0 - timedelta(hours=1), soil=3.0)

    rows = reading_repo.between(T0 - timedelta(hours=2), T0)

    assert [r.soil_humidity for r in rows] == [2.0, 3.0, 4.0]
    times = [r.captured_at for r in rows]
    assert times == sorted(times)


def test_stats_between_empty_window(reading_repo):
    stats = reading_repo.stats_between(T0 - timedelta(hours=1), T0)
    assert stats["count"] == 0
    assert stats["soil_avg"] is None


def test_stats_between_aggregates(reading_repo):
    _append(reading_repo, T0 - timedelta(minutes=30), soil=20.0)
    _append(reading_repo, T0 - timedelta(minutes=10), soil=40.0)
    _append(reading_repo, T0 - timedelta(hours=5), soil=90.0)

    stats = reading_repo.stats_between(T0 - timedelta(hours=1), T0)

    assert stats["count"] == 2
    assert stats["soil_avg"] == pytest.approx(30.0)
    assert stats["soil_min"] == 20.0
    assert stats["soil_max"] == 40.0


def test_capture_time_keeps_sub_second_precision(reading_repo):
    captured = T0.replace(microsecond=250_000)
    _append(reading_repo, captured)

    assert reading_repo.latest().captured_at == captured


def test_between_excludes_reading_just_before_window(reading_repo):
    since = T0.replace(microsecond=600_000)
    _append(reading_repo, since - timedelta(milliseconds=300), soil=1.0)
    _append(reading_repo, since, soil=2.0)

    readings = reading_repo.between(since, since + timedelta(hours=1))

    assert [r.soil_humidity for r in readings] == [2.0]
