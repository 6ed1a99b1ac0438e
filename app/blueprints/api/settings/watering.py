"""
Watering settings endpoints.

- GET /settings - current settings (defaults are persisted on first read)
- PUT /settings - partial update of humidity_threshold, watering_mode, scheduled_interval

Changing ``watering_mode`` here updates the stored policy only. The live mode
is switched through POST /command.
"""

from __future__ import annotations

import logging

from app.blueprints.api._common import get_json, get_settings_service, legacy, legacy_request, parse_body, success
from app.blueprints.api.settings import settings_api
from app.schemas.control import SettingsUpdateRequest
from app.utils.http import safe_route

logger = logging.getLogger(__name__)


@settings_api.get("/settings")
@safe_route("Failed to load settings")
def get_settings():
    settings = get_settings_service().current().to_dict()
    return legacy(settings) if legacy_request() else success(settings)


@settings_api.put("/settings")
@safe_route("Failed to update settings")
def update_settings():
    body = parse_body(SettingsUpdateRequest, get_json())
    updated = get_settings_service().update(
        humidity_threshold=body.humidity_threshold,
        watering_mode=body.watering_mode,
        scheduled_interval=body.scheduled_interval,
    )
    if legacy_request():
        return legacy({"success": True, "settings": updated.to_dict(), "message": "Settings updated successfully"})
    return success(updated.to_dict(), message="Settings updated successfully")
