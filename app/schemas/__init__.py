"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from app.schemas.control import CommandRequest, SettingsUpdateRequest
from app.schemas.events import SensorReadingPayload, SystemStatusPayload
from app.schemas.readings import HistoryQuery, SensorDataRequest

__all__ = [
    "CommandRequest",
    "HistoryQuery",
    "SensorDataRequest",
    "SensorReadingPayload",
    "SettingsUpdateRequest",
    "SystemStatusPayload",
]
