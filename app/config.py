"""
Configuration for PlantCare Monitor
===================================
Runtime settings for the HTTP API, the SQLite store and the background
scheduler, loaded from ``PLANTCARE_*`` environment variables.
Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("PLANTCARE_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("PLANTCARE_SECRET_KEY", "PlantCareDevSecretKey"))
    database_path: str = field(
        default_factory=lambda: os.getenv("PLANTCARE_DATABASE_PATH", "database/plantcare.db")
    )
    # Upper bound on how long a database call waits for a lock
    db_timeout_seconds: float = field(default_factory=lambda: _env_float("PLANTCARE_DB_TIMEOUT", 5.0))

    host: str = field(default_factory=lambda: os.getenv("PLANTCARE_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PLANTCARE_PORT", 5001))

    cors_origins: str = field(default_factory=lambda: os.getenv("PLANTCARE_CORS_ORIGINS", "*"))
    socketio_cors_origins: str = field(default_factory=lambda: os.getenv("PLANTCARE_SOCKETIO_CORS", "*"))

    # Device liveness
    offline_timeout_seconds: int = field(default_factory=lambda: _env_int("PLANTCARE_OFFLINE_TIMEOUT", 300))
    liveness_check_interval_seconds: int = field(
        default_factory=lambda: _env_int("PLANTCARE_LIVENESS_CHECK_INTERVAL", 60)
    )

    # Watering decision tick (independent of the displayed scheduled_interval)
    decision_interval_seconds: int = field(
        default_factory=lambda: _env_int("PLANTCARE_DECISION_INTERVAL_SECONDS", 3600)
    )
    scheduler_max_workers: int = field(default_factory=lambda: _env_int("PLANTCARE_SCHEDULER_WORKERS", 2))

    history_default_hours: int = field(default_factory=lambda: _env_int("PLANTCARE_HISTORY_DEFAULT_HOURS", 24))
    history_max_hours: int = field(default_factory=lambda: _env_int("PLANTCARE_HISTORY_MAX_HOURS", 720))

    DEBUG: bool = field(default_factory=lambda: _env_bool("PLANTCARE_DEBUG", False))
    log_file_path: str = field(default_factory=lambda: os.getenv("PLANTCARE_LOG_FILE", "logs/plantcare.log"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("PLANTCARE_AUDIT_LOG_PATH", "logs/audit.log"))
    log_level: str = field(default_factory=lambda: os.getenv("PLANTCARE_LOG_LEVEL", "INFO"))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="PlantCareDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set PLANTCARE_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.offline_timeout_seconds <= 0:
            raise ValueError("PLANTCARE_OFFLINE_TIMEOUT must be positive.")
        if self.decision_interval_seconds <= 0 or self.liveness_check_interval_seconds <= 0:
            raise ValueError("Scheduler intervals must be positive.")
        if self.history_default_hours <= 0 or self.history_max_hours < self.history_default_hours:
            raise ValueError("History window bounds are inconsistent.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "DATABASE_PATH": self.database_path,
            "DB_TIMEOUT_SECONDS": self.db_timeout_seconds,
            "CORS_ORIGINS": self.cors_origins,
            "SOCKETIO_CORS_ALLOWED_ORIGINS": self.socketio_cors_origins,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "OFFLINE_TIMEOUT_SECONDS": self.offline_timeout_seconds,
            "HISTORY_DEFAULT_HOURS": self.history_default_hours,
            "HISTORY_MAX_HOURS": self.history_max_hours,
            "DEBUG": self.DEBUG,
        }


def setup_logging(debug: bool = False, log_path: str = "logs/plantcare.log") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "plantcare_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "plantcare_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "plantcare_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if not has_file:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
            delay=True,
        )
        file_handler.name = "plantcare_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"plantcare_console", "plantcare_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info(f"Logging initialized at level: {logging.getLevelName(log_level)}")

    if _env_bool("PLANTCARE_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    # Engine.IO polling is noisy at INFO
    if _env_bool("PLANTCARE_SILENCE_SOCKETIO", True):
        logging.getLogger("socketio").setLevel(logging.WARNING)
        logging.getLogger("engineio").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
