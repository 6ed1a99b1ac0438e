"""
Domain Value Objects Package
=============================
Plain dataclasses describing readings, settings, live status and decisions.
"""

from .decisions import WateringDecision
from .readings import MetricSummary, ReadingSummary, SensorReading
from .settings import DEFAULT_SETTINGS, WateringSettings
from .system import SystemStatus

__all__ = [
    "DEFAULT_SETTINGS",
    "MetricSummary",
    "ReadingSummary",
    "SensorReading",
    "SystemStatus",
    "WateringDecision",
    "WateringSettings",
]
