from datetime import datetime, timedelta, timezone

from app.utils.time import coerce_datetime, sqlite_timestamp, utc_now


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)
    assert isinstance(utc_now() - dt, timedelta)


def test_coerce_datetime_reads_sqlite_format():
    assert coerce_datetime("2026-01-01 08:30:00") == datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc)


def test_coerce_datetime_rejects_garbage():
    assert coerce_datetime("not a date") is None
    assert coerce_datetime(12345) is None
    assert coerce_datetime(None) is None


def test_sqlite_timestamp_normalizes_to_utc_and_keeps_microseconds():
    aware = datetime(2026, 1, 1, 10, 0, 0, 999_999, tzinfo=timezone(timedelta(hours=2)))
    assert sqlite_timestamp(aware) == "2026-01-01 08:00:00.999999"
    assert sqlite_timestamp(datetime(2026, 1, 1, 10, 0, 0)) == "2026-01-01 10:00:00.000000"


def test_sqlite_timestamp_sorts_as_text():
    earlier = sqlite_timestamp(datetime(2026, 1, 1, 9, 59, 59, 900_000, tzinfo=timezone.utc))
    later = sqlite_timestamp(datetime(2026, 1, 1, 10, 0, 0, 100_000, tzinfo=timezone.utc))
    assert earlier < later


def test_sqlite_timestamp_parses_back():
    stamp = datetime(2026, 1, 1, 8, 0, 0, 250_000, tzinfo=timezone.utc)
    assert coerce_datetime(sqlite_timestamp(stamp)) == stamp
