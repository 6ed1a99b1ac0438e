import json
from datetime import timedelta

import pytest

from app.domain.exceptions import PersistenceError, ValidationError
from app.enums import WateringMode


def _row_count(db_handler) -> int:
    with db_handler.connection() as conn:
        return conn.execute("SELECT COUNT(*) FROM WateringSettings").fetchone()[0]


def test_current_seeds_defaults_once(settings_service, db_handler):
    assert _row_count(db_handler) == 0

    first = settings_service.current()
    second = settings_service.current()

    assert first == second
    assert first.humidity_threshold == 30
    assert first.watering_mode is WateringMode.AUTO
    assert first.scheduled_interval == 12
    assert first.last_updated is not None
    assert _row_count(db_handler) == 1


def test_update_merges_partial_fields(settings_service, clock):
    original = settings_service.current()
    clock.advance(minutes=10)

    updated = settings_service.update(humidity_threshold=40)

    assert updated.humidity_threshold == 40
    assert updated.watering_mode == original.watering_mode
    assert updated.scheduled_interval == original.scheduled_interval
    assert updated.last_updated == original.last_updated + timedelta(minutes=10)
    assert settings_service.current() == updated


def test_update_without_existing_record_seeds_first(settings_service, db_handler):
    updated = settings_service.update(watering_mode="manual")

    assert updated.watering_mode is WateringMode.MANUAL
    assert updated.humidity_threshold == 30
    assert _row_count(db_handler) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"humidity_threshold": -1},
        {"humidity_threshold": 101},
        {"humidity_threshold": 12.5},
        {"humidity_threshold": True},
        {"watering_mode": "sometimes"},
        {"scheduled_interval": 0},
    ],
)
def test_update_rejects_invalid_values(settings_service, kwargs):
    before = settings_service.current()
    with pytest.raises(ValidationError):
        settings_service.update(**kwargs)
    assert settings_service.current() == before


def test_update_writes_audit_record(settings_service, audit_log_path, audit_logger):
    settings_service.update(scheduled_interval=6)

    for handler in audit_logger.logger.handlers:
        handler.flush()
    lines = audit_log_path.read_text(encoding="utf-8").strip().splitlines()
    record = json.loads(lines[-1].split(" | ", 2)[2])
    assert record["actor"] == "operator"
    assert record["action"] == "update"
    assert record["resource"] == "settings"
    assert record["meta"] == {"scheduled_interval": 6}


def test_update_raises_when_store_has_no_row(settings_service, monkeypatch):
    settings_service.current()
    monkeypatch.setattr(settings_service.repository, "update", lambda **_: None)
    with pytest.raises(PersistenceError):
        settings_service.update(humidity_threshold=50)
