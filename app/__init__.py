from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from dataclasses import replace
from typing import Any

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from app.blueprints.api.control import control_api
from app.blueprints.api.health import health_api
from app.blueprints.api.readings import readings_api
from app.blueprints.api.settings import settings_api
from app.config import load_config, setup_logging
from app.extensions import init_extensions, socketio
from app.utils.http import LEGACY_API_ENVIRON_KEY


def create_app(config_overrides: dict[str, Any] | None = None, *, bootstrap_runtime: bool = False) -> Flask:
    """Application factory.

    Args:
        config_overrides: AppConfig field overrides (tests, embedding)
        bootstrap_runtime: Start the background scheduler (liveness checks and
            watering decisions). Off by default so tests stay deterministic.
    """
    config = load_config()
    if config_overrides:
        # replace() re-runs __post_init__, so overrides are validated like env values
        config = replace(
            config,
            **{key if hasattr(config, key) else key.lower(): value for key, value in config_overrides.items()},
        )

    setup_logging(debug=config.DEBUG, log_path=config.log_file_path)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.json.sort_keys = False

    # Socket.IO must exist before the container wires the emitter into the services
    init_extensions(flask_app, config.cors_origins, config.socketio_cors_origins)

    from app.services.container import ServiceContainer
    from app.utils.emitters import EmitterService

    container = ServiceContainer.build(
        config,
        start_scheduler=bootstrap_runtime,
        emitter=EmitterService(socketio),
    )
    flask_app.config["CONTAINER"] = container
    flask_app.teardown_appcontext(container.database.close_db)

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        if getattr(container, "_shutdown_complete", False):
            return
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    atexit.register(_graceful_shutdown, "atexit")

    # SIGINT=Ctrl-C, SIGTERM=systemd stop; only possible from the main thread
    if threading.current_thread() is threading.main_thread():
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Global JSON error handler for anything that escapes safe_route on /api/
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        if not request.path.startswith("/api/"):
            if isinstance(exc, HTTPException):
                return exc
            raise exc
        from app.domain.exceptions import PlantCareError
        from app.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, PlantCareError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status, details=exc.detail or None)

        return safe_error(exc, 500, context="unhandled")

    # ── API version prefix ──────────────────────────────────────────
    V1 = "/api/v1"
    flask_app.register_blueprint(readings_api, url_prefix=V1)
    flask_app.register_blueprint(control_api, url_prefix=V1)
    flask_app.register_blueprint(settings_api, url_prefix=V1)
    flask_app.register_blueprint(health_api, url_prefix=V1)

    # ── Backward-compat: rewrite /api/* → /api/v1/* ─────────────
    # WSGI-level rewrite (no HTTP redirect). Unversioned requests are flagged so
    # routes answer with the bare bodies the node firmware and dashboard read.
    _original_wsgi = flask_app.wsgi_app

    def _legacy_api_rewrite(environ, start_response):
        path = environ.get("PATH_INFO", "")
        if path.startswith("/api/") and not path.startswith("/api/v1/"):
            environ["PATH_INFO"] = "/api/v1" + path[4:]
            environ[LEGACY_API_ENVIRON_KEY] = True
        return _original_wsgi(environ, start_response)

    flask_app.wsgi_app = _legacy_api_rewrite  # type: ignore[assignment]

    logger = logging.getLogger(__name__)
    logger.info(
        "PlantCare application initialized (env=%s, scheduler=%s).",
        config.environment,
        "running" if bootstrap_runtime else "idle",
    )
    return flask_app
