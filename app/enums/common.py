"""
Common Enumerations
====================

Enums shared by the status register, the decision engine and the HTTP layer.
Values are the exact strings used on the wire and in the database.
"""

from enum import Enum


class PumpState(str, Enum):
    """
    Commanded state of the irrigation pump.
    Used by: sensor ingestion, command gateway, status register
    """
    ON = "on"
    OFF = "off"

    def __str__(self) -> str:
        return self.value


class WateringMode(str, Enum):
    """
    Watering policy.
    AUTO lets the decision engine issue commands; MANUAL leaves the pump to the operator.
    """
    AUTO = "auto"
    MANUAL = "manual"

    def __str__(self) -> str:
        return self.value


class CommandSource(str, Enum):
    """Origin of a pump/mode command (recorded in the audit log)."""
    OPERATOR = "operator"
    AUTOMATIC = "automatic"

    def __str__(self) -> str:
        return self.value


class DecisionReason(str, Enum):
    """Why a decision evaluation did or did not fire."""
    MANUAL_MODE = "manual_mode"
    NO_READING = "no_reading"
    BELOW_THRESHOLD = "below_threshold"
    SATISFIED = "satisfied"

    def __str__(self) -> str:
        return self.value
