"""WSGI entry point for the PlantCare backend.

``app`` is the module-level WSGI application; ``main`` runs it with the
Socket.IO server for development and small deployments.
"""
from __future__ import annotations

import logging

from app import create_app, socketio
from app.config import load_config


def build_app():
    """Create the Flask app with the background scheduler running."""
    return create_app(bootstrap_runtime=True)


app = build_app()


def main() -> int:
    config = load_config()

    logging.info("Starting server on %s:%s", config.host, config.port)
    logging.info("SocketIO async_mode: %s", socketio.async_mode)

    try:
        socketio.run(
            app,
            host=config.host,
            port=config.port,
            debug=config.DEBUG,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
