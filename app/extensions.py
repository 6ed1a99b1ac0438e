"""Flask Extension Instances and Initialisation."""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

# Browsers on another origin poll the REST API directly
cors = CORS()


def _socketio_transports() -> list[str]:
    """Return allowed Engine.IO transports.

    Default to polling-only to avoid Werkzeug websocket upgrade crashes.
    Override with `PLANTCARE_SOCKETIO_TRANSPORTS`, e.g. `polling,websocket`.
    """
    raw = os.getenv("PLANTCARE_SOCKETIO_TRANSPORTS")
    if raw:
        transports = [t.strip() for t in raw.split(",") if t.strip()]
        if transports:
            return transports

    return ["polling"]


socketio = SocketIO(
    async_mode="threading",
    cors_allowed_origins=[],
    logger=False,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25,
    transports=_socketio_transports(),
)


def _split_origins(raw: str) -> str | list[str]:
    if not isinstance(raw, str) or raw.strip() in {"", "*"}:
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def init_extensions(app: Flask, cors_origins: str, socketio_cors_origins: str | None = None) -> None:
    """Initialise Flask extension objects."""
    origins = _split_origins(cors_origins)
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    sio_origins = _split_origins(socketio_cors_origins if socketio_cors_origins is not None else cors_origins)
    try:
        logging.getLogger("engineio").setLevel(logging.WARNING)
        socketio.init_app(
            app, cors_allowed_origins=sio_origins, logger=logging.getLogger("socketio"), engineio_logger=False
        )
        logging.info("Socket.IO initialized with CORS origins: %s", sio_origins)
    except Exception as e:
        logging.error(f"Failed to initialize Socket.IO: {e}", exc_info=True)
        raise
