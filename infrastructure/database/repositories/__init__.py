"""Repository facades exposing typed accessors over low-level mixins."""

from infrastructure.database.repositories.readings import ReadingRepository
from infrastructure.database.repositories.settings import SettingsRepository

__all__ = [
    "ReadingRepository",
    "SettingsRepository",
]
