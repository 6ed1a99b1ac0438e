"""
System Health Endpoints
=======================

Everything reported here is in memory; no storage call can fail the check.
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response

from app.blueprints.api._common import (
    get_decision_service as _decision_service,
    get_scheduler as _scheduler,
    get_status_register as _status_register,
    legacy as _legacy,
    legacy_request as _legacy_request,
    success as _success,
)
from app.utils.http import safe_route
from app.utils.time import iso_now

logger = logging.getLogger("health_api")


def register_system_routes(health_api: Blueprint):
    """Register system health routes on the blueprint."""

    @health_api.get("/health")
    @safe_route("Failed to get system health")
    def get_health() -> Response:
        """
        Returns:
            {
                "status": "OK",
                "timestamp": "2026-...",
                "systemStatus": {"isOnline": ..., "lastHeartbeat": ..., ...},
                "lastDecision": {...} | null,
                "scheduler": {"health": "healthy|degraded|unhealthy", ...}
            }
        """
        last_decision = _decision_service().last_decision
        body = {
            "status": "OK",
            "timestamp": iso_now(),
            "systemStatus": _status_register().snapshot().to_dict(),
            "lastDecision": last_decision.to_dict() if last_decision else None,
            "scheduler": _scheduler().health_check(),
        }
        return _legacy(body) if _legacy_request() else _success(body)
