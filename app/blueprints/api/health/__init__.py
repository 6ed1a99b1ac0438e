"""
Health API Blueprint
====================

Routes:
- GET /health - liveness of the API plus device status, last watering
  decision and scheduler health. Always 200 while the process serves requests.
"""

from __future__ import annotations

import logging

from flask import Blueprint

logger = logging.getLogger("health_api")

health_api = Blueprint("health_api", __name__)

from app.blueprints.api.health.system import register_system_routes

register_system_routes(health_api)

__all__ = ["health_api"]
