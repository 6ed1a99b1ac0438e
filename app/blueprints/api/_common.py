"""
Blueprint Common Utilities
==========================

Shared helper functions for all API blueprints.

Usage:
    from app.blueprints.api._common import (
        get_container, get_json, parse_body, success, fail, legacy,
        get_reading_service, get_settings_service, ...
    )
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Type, TypeVar

from flask import current_app, request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.domain.exceptions import ValidationError
from app.utils.http import error_response, is_legacy_request, legacy_response, success_response

logger = logging.getLogger("api._common")

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# ============================================================================
# CONTAINER ACCESS
# ============================================================================


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_reading_service():
    return get_container().reading_service


def get_settings_service():
    return get_container().settings_service


def get_status_register():
    return get_container().status_register


def get_command_gateway():
    return get_container().command_gateway


def get_decision_service():
    return get_container().decision_service


def get_scheduler():
    return get_container().scheduler


# ============================================================================
# REQUEST HELPERS
# ============================================================================


def get_json() -> dict:
    """Get JSON request body, or an empty dict when absent or malformed."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def parse_body(schema: Type[SchemaT], payload: Mapping[str, Any]) -> SchemaT:
    """
    Validate ``payload`` against a pydantic schema.

    Raises:
        ValidationError: with ``missing`` and ``errors`` details on failure
    """
    try:
        return schema.model_validate(dict(payload))
    except PydanticValidationError as ve:
        errors = ve.errors(include_url=False, include_context=False, include_input=False)
        missing = [".".join(str(part) for part in err["loc"]) for err in errors if err["type"] == "missing"]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                detail={"missing": missing, "errors": errors},
            ) from None
        message = errors[0]["msg"] if len(errors) == 1 else "Invalid request"
        raise ValidationError(message, detail={"errors": errors}) from None


def query_hours() -> float:
    """Read ``?hours=`` bounded by the configured history window."""
    from app.schemas.readings import HistoryQuery

    raw = request.args.get("hours")
    default_hours = current_app.config.get("HISTORY_DEFAULT_HOURS", 24)
    query = parse_body(HistoryQuery, {"hours": raw if raw not in (None, "") else default_hours})
    max_hours = current_app.config.get("HISTORY_MAX_HOURS", 720)
    if query.hours > max_hours:
        raise ValidationError(f"hours must not exceed {max_hours}", detail={"max_hours": max_hours})
    return query.hours


# ============================================================================
# RESPONSE HELPERS
# ============================================================================


def success(data: dict | list | None = None, status: int = 200, *, message: str | None = None):
    """
    Standard success response wrapper.

    Returns:
        Flask Response with format: {"ok": true, "data": ..., "error": null}
    """
    return success_response(data, status, message=message)


def legacy_request() -> bool:
    """Request arrived on an unversioned /api/* path (legacy body shapes apply)."""
    return is_legacy_request()


def legacy(body: Any, status: int = 200):
    """
    Unwrapped response for the unversioned API.

    Returns:
        Flask Response whose JSON body is ``body`` itself
    """
    return legacy_response(body, status)


def fail(message: str, status: int = 400, *, details: dict | None = None):
    """
    Standard error response wrapper.

    Returns:
        Flask Response with format: {"ok": false, "data": null, "error": {...}}
    """
    return error_response(message, status, details=details)
