from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, has_request_context, jsonify, request

from app.utils.time import iso_now

_log = logging.getLogger(__name__)

# Set on the WSGI environ when a request arrived on an unversioned /api/* path
LEGACY_API_ENVIRON_KEY = "plantcare.legacy_api"

# ---------------------------------------------------------------------------
# Generic user-facing messages, never leak internals
# ---------------------------------------------------------------------------
_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    405: "Method not allowed",
    500: "An internal error occurred",
}


def is_legacy_request() -> bool:
    """True when the current request came in through the unversioned /api/* paths."""
    return has_request_context() and bool(request.environ.get(LEGACY_API_ENVIRON_KEY))


def legacy_response(body: Any, status: int = 200) -> Response:
    """Bare JSON body, without the envelope, as the unversioned API returned it."""
    response = jsonify(body)
    response.status_code = status
    return response


def safe_error(
    exc: BaseException,
    status: int = 500,
    *,
    context: str = "",
) -> Response:
    """Return a generic error response while logging the real exception.

    Parameters
    ----------
    exc:
        The caught exception. Logged server-side, **never** sent to the client.
    status:
        HTTP status code for the response (determines the generic message).
    context:
        Optional human-readable context logged alongside *exc*,
        e.g. ``"storing sensor reading"``.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    message = _GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500])
    return error_response(message, status)


def success_response(
    data: dict | list | None = None,
    status: int = 200,
    *,
    message: str | None = None,
) -> Response:
    payload: dict[str, Any] = {"ok": True, "data": data, "error": None}
    if message is not None:
        payload["message"] = message
    response = jsonify(payload)
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    details: dict | None = None,
) -> Response:
    if is_legacy_request():
        legacy_body: dict[str, Any] = {"error": message}
        if details:
            legacy_body["details"] = details
        return legacy_response(legacy_body, status)
    payload: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if details:
        payload["details"] = details
    response = jsonify({"ok": False, "data": None, "error": payload})
    response.status_code = status
    return response


# ---------------------------------------------------------------------------
# Route decorator
# ---------------------------------------------------------------------------


def safe_route(
    error_message: str = "An internal error occurred",
    *,
    error_status: int = 500,
) -> Callable:
    """Decorator that wraps a Flask route handler with standardized error handling.

    Catches :class:`~app.domain.exceptions.PlantCareError` subclasses and maps
    them to the correct HTTP status via ``exc.http_status``. Client errors keep
    their message and ``detail``; anything else is logged and returns a
    generic message.

    Usage::

        @sensors_api.get("/latest")
        @safe_route("Failed to load latest data")
        def get_latest():
            ...
    """
    from app.domain.exceptions import PlantCareError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except PlantCareError as exc:
                status = exc.http_status
                if status >= 500:
                    return safe_error(exc, status, context=error_message)
                _log.info("Rejected request [%s]: %s", status, exc)
                return error_response(str(exc) or error_message, status, details=exc.detail or None)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
