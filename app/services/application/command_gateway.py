"""
Command Gateway
===============

Single entry point for pump and mode commands, whether issued by the operator
over HTTP or by the watering decision service.

The gateway updates the status register and records the intended command.
Delivering it to the physical node is outside this service: the node reads
the commanded state back on its next report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.domain.exceptions import ValidationError
from app.enums import CommandSource, PumpState, WateringMode
from app.services.application.status_register import StatusRegister
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class CommandGateway:
    status_register: StatusRegister
    audit_logger: Optional[AuditLogger] = None

    def issue_command(
        self,
        *,
        pump: Optional[PumpState | str] = None,
        mode: Optional[WateringMode | str] = None,
        source: CommandSource = CommandSource.OPERATOR,
    ) -> Dict[str, Any]:
        """Apply ``pump`` and/or ``mode`` to the live status.

        Mode changes are not written to the settings store.

        Returns:
            Echo of what was applied: ``{"pump": "on"|"off"|None, "mode": "auto"|"manual"|None}``
        """
        if pump is None and mode is None:
            raise ValidationError("Missing pump or mode command")

        pump_state = self._parse(PumpState, pump, "pump")
        watering_mode = self._parse(WateringMode, mode, "mode")

        if pump_state is not None:
            self.status_register.set_pump(pump_state)
        if watering_mode is not None:
            self.status_register.set_mode(watering_mode)

        applied = {
            "pump": pump_state.value if pump_state else None,
            "mode": watering_mode.value if watering_mode else None,
        }
        logger.info("Command sent (%s): pump=%s mode=%s", source.value, applied["pump"], applied["mode"])
        self._audit(source, "pump" if pump_state else "mode", "applied", applied)
        return applied

    def issue_automatic_pump(self, state: PumpState = PumpState.ON) -> bool:
        """Apply an automatic pump command only while the live mode is auto.

        Returns False, and changes nothing, when the operator switched to
        manual after the decision was made.
        """
        pump_state = PumpState(state)
        applied = {"pump": pump_state.value, "mode": None}
        if not self.status_register.set_pump_if_mode(pump_state, WateringMode.AUTO):
            logger.info("Automatic pump=%s withheld: live mode is manual", pump_state.value)
            self._audit(CommandSource.AUTOMATIC, "pump", "withheld", applied)
            return False

        logger.info("Command sent (%s): pump=%s mode=None", CommandSource.AUTOMATIC.value, pump_state.value)
        self._audit(CommandSource.AUTOMATIC, "pump", "applied", applied)
        return True

    def _audit(self, source: CommandSource, resource: str, outcome: str, applied: Dict[str, Any]) -> None:
        if self.audit_logger:
            self.audit_logger.log_event(
                source.value,
                "command",
                resource,
                outcome,
                **{key: value for key, value in applied.items() if value is not None},
            )

    @staticmethod
    def _parse(enum_cls, value, field_name: str):
        if value is None:
            return None
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ValidationError(f"Invalid {field_name} {value!r}; expected one of: {allowed}") from None
