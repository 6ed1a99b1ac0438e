"""
Shared test fixtures for the PlantCare backend test suite.

Provides:
- In-memory SQLite database with all tables created
- Repository instances wired to the test database
- A controllable clock so time windows and liveness are deterministic
- Service factories for the status/decision engine

Usage:
    def test_example(reading_service, clock):
        reading_service.ingest(soil_humidity=40, temperature=20, air_humidity=50, pump_status="off")
        clock.advance(minutes=6)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from app.services.application.command_gateway import CommandGateway
from app.services.application.liveness_monitor import LivenessMonitor
from app.services.application.reading_service import ReadingService
from app.services.application.settings_service import SettingsService
from app.services.application.status_register import StatusRegister
from app.services.application.watering_decision_service import WateringDecisionService
from infrastructure.database.repositories.readings import ReadingRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ========================== Clock =========================================


@pytest.fixture()
def clock():
    return FakeClock()


# ========================== Database Fixtures ==============================


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with all tables created.

    Each test gets a fresh database, no cross-test contamination.
    """
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close()


@pytest.fixture()
def reading_repo(db_handler):
    return ReadingRepository(db_handler)


@pytest.fixture()
def settings_repo(db_handler):
    return SettingsRepository(db_handler)


@pytest.fixture()
def audit_log_path(tmp_path):
    return tmp_path / "audit.log"


@pytest.fixture()
def audit_logger(audit_log_path):
    return AuditLogger(str(audit_log_path))


# ========================== Service Fixtures ===============================


@pytest.fixture()
def status_register(clock):
    return StatusRegister(clock=clock)


@pytest.fixture()
def settings_service(settings_repo, audit_logger, clock):
    return SettingsService(settings_repo, audit_logger=audit_logger, clock=clock)


@pytest.fixture()
def reading_service(reading_repo, status_register, clock):
    return ReadingService(reading_repo, status_register, clock=clock)


@pytest.fixture()
def command_gateway(status_register, audit_logger):
    return CommandGateway(status_register, audit_logger=audit_logger)


@pytest.fixture()
def liveness_monitor(status_register):
    return LivenessMonitor(status_register, offline_timeout=timedelta(minutes=5))


@pytest.fixture()
def decision_service(status_register, settings_service, reading_service, command_gateway, clock):
    return WateringDecisionService(
        status_register=status_register,
        settings_service=settings_service,
        reading_service=reading_service,
        command_gateway=command_gateway,
        clock=clock,
    )


# ========================== Helpers ========================================


@pytest.fixture()
def ingest(reading_service):
    """Store a reading with sensible defaults for the fields a test does not care about."""

    def _ingest(soil: float = 40.0, pump: str = "off", **kwargs) -> int:
        return reading_service.ingest(
            soil_humidity=soil,
            temperature=kwargs.pop("temperature", 21.5),
            air_humidity=kwargs.pop("air_humidity", 55.0),
            pump_status=pump,
            **kwargs,
        )

    return _ingest
