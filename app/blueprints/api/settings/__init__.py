"""
Settings API Module
Watering policy endpoints.
"""

from __future__ import annotations

from flask import Blueprint

# Create blueprint here to avoid circular imports
settings_api = Blueprint("settings_api", __name__)

# Import route modules to register their endpoints (must be after blueprint creation)
from . import watering

_ = (watering,)

__all__ = ["settings_api"]
