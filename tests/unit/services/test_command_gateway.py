import json

import pytest

from app.domain.exceptions import ValidationError
from app.enums import CommandSource, PumpState, WateringMode


def test_requires_pump_or_mode(command_gateway):
    with pytest.raises(ValidationError, match="Missing pump or mode command"):
        command_gateway.issue_command()


def test_pump_only_leaves_mode(command_gateway, status_register):
    applied = command_gateway.issue_command(pump="on")

    assert applied == {"pump": "on", "mode": None}
    status = status_register.snapshot()
    assert status.pump_status is PumpState.ON
    assert status.current_mode is WateringMode.AUTO


def test_mode_only_leaves_pump(command_gateway, status_register):
    applied = command_gateway.issue_command(mode=WateringMode.MANUAL)

    assert applied == {"pump": None, "mode": "manual"}
    status = status_register.snapshot()
    assert status.current_mode is WateringMode.MANUAL
    assert status.pump_status is PumpState.OFF


def test_both_fields_applied(command_gateway, status_register):
    command_gateway.issue_command(pump="on", mode="manual")
    status = status_register.snapshot()
    assert (status.pump_status, status.current_mode) == (PumpState.ON, WateringMode.MANUAL)


@pytest.mark.parametrize("kwargs", [{"pump": "maybe"}, {"mode": "turbo"}, {"pump": "on", "mode": "turbo"}])
def test_unknown_values_rejected_without_partial_apply(command_gateway, status_register, kwargs):
    before = status_register.snapshot()
    with pytest.raises(ValidationError):
        command_gateway.issue_command(**kwargs)
    assert status_register.snapshot() == before


def test_mode_command_does_not_touch_settings(command_gateway, settings_service):
    settings_service.current()
    command_gateway.issue_command(mode="manual")
    assert settings_service.current().watering_mode is WateringMode.AUTO


def test_command_is_audited_with_source(command_gateway, audit_logger, audit_log_path):
    command_gateway.issue_command(pump="on", source=CommandSource.AUTOMATIC)

    for handler in audit_logger.logger.handlers:
        handler.flush()
    record = json.loads(audit_log_path.read_text(encoding="utf-8").strip().splitlines()[-1].split(" | ", 2)[2])
    assert record["actor"] == "automatic"
    assert record["action"] == "command"
    assert record["meta"] == {"pump": "on"}


def _last_audit_record(audit_logger, audit_log_path):
    for handler in audit_logger.logger.handlers:
        handler.flush()
    return json.loads(audit_log_path.read_text(encoding="utf-8").strip().splitlines()[-1].split(" | ", 2)[2])


def test_automatic_pump_applies_in_auto_mode(command_gateway, status_register, audit_logger, audit_log_path):
    assert command_gateway.issue_automatic_pump(PumpState.ON) is True

    assert status_register.snapshot().pump_status is PumpState.ON
    record = _last_audit_record(audit_logger, audit_log_path)
    assert (record["actor"], record["outcome"]) == ("automatic", "applied")


def test_automatic_pump_withheld_in_manual_mode(command_gateway, status_register, audit_logger, audit_log_path):
    command_gateway.issue_command(mode="manual")

    assert command_gateway.issue_automatic_pump(PumpState.ON) is False

    assert status_register.snapshot().pump_status is PumpState.OFF
    record = _last_audit_record(audit_logger, audit_log_path)
    assert (record["actor"], record["outcome"]) == ("automatic", "withheld")
