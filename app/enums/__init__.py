"""
Enums Module
============

This module provides enumeration types for the PlantCare application.
Enums ensure type safety and consistency across the codebase.
"""

from app.enums.common import CommandSource, DecisionReason, PumpState, WateringMode

__all__ = [
    "CommandSource",
    "DecisionReason",
    "PumpState",
    "WateringMode",
]
