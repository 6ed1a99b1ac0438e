"""
Sensor Readings API
===================

Ingestion endpoint for the sensor node plus the dashboard's read endpoints.

Routes (all under /api/v1; legacy /api/* is rewritten and answers with bare
bodies, e.g. a plain list from /history):
- POST /data - store one reading (node payload: soil, temp, hum, pump, timestamp?)
- GET /latest - latest reading, live status and current settings
- GET /history?hours=24 - readings in the window, oldest first
- GET /history/summary?hours=24 - count and avg/min/max per metric
"""

from __future__ import annotations

import logging

from flask import Blueprint

from app.blueprints.api._common import (
    fail,
    get_json,
    get_reading_service,
    get_settings_service,
    get_status_register,
    legacy,
    legacy_request,
    parse_body,
    query_hours,
    success,
)
from app.schemas.readings import SensorDataRequest
from app.utils.http import safe_route

logger = logging.getLogger(__name__)

readings_api = Blueprint("readings_api", __name__)


@readings_api.post("/data")
@safe_route("Failed to store sensor data")
def receive_sensor_data():
    """Store one reading reported by the sensor node."""
    raw = get_json()
    if not raw:
        return fail("Request body must be a JSON object", 400)

    body = parse_body(SensorDataRequest, raw)
    reading_id = get_reading_service().ingest(
        soil_humidity=body.soil,
        temperature=body.temp,
        air_humidity=body.hum,
        pump_status=body.pump,
        captured_at=body.timestamp,
    )
    if legacy_request():
        return legacy({"success": True, "id": reading_id, "message": "Data received successfully"})
    return success({"id": reading_id}, 201, message="Data received successfully")


@readings_api.get("/latest")
@safe_route("Failed to load latest data")
def get_latest():
    reading = get_reading_service().latest()
    body = {
        "sensorData": reading.to_dict() if reading else None,
        "systemStatus": get_status_register().snapshot().to_dict(),
        "settings": get_settings_service().current().to_dict(),
    }
    return legacy(body) if legacy_request() else success(body)


@readings_api.get("/history")
@safe_route("Failed to load history")
def get_history():
    hours = query_hours()
    readings = get_reading_service().range_since(hours)
    rows = [reading.to_history_dict() for reading in readings]
    return legacy(rows) if legacy_request() else success(rows)


@readings_api.get("/history/summary")
@safe_route("Failed to summarize history")
def get_history_summary():
    hours = query_hours()
    summary = get_reading_service().summarize(hours).to_dict()
    return legacy(summary) if legacy_request() else success(summary)
