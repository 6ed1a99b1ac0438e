"""Centralized exception hierarchy for PlantCare.

All domain and service exceptions inherit from :class:`PlantCareError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    PlantCareError (base: maps to 500)
    ├── ValidationError          (400: bad input from caller)
    └── ServiceError             (500: business-logic failure)
        └── PersistenceError     (500: database / persistence)

"No data yet" is not an error: stores return ``None`` or an empty list.
"""

from __future__ import annotations


class PlantCareError(Exception):
    """Base exception for all PlantCare application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging and 4xx response details.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(PlantCareError):
    """Caller supplied invalid or incomplete input (HTTP 400). Never retried."""

    http_status: int = 400


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(PlantCareError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class PersistenceError(ServiceError):
    """Storage operation failed (HTTP 500). Not retried automatically."""

    http_status: int = 500
