from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from app.config import AppConfig
from app.services.application.command_gateway import CommandGateway
from app.services.application.liveness_monitor import LivenessMonitor
from app.services.application.reading_service import ReadingService
from app.services.application.settings_service import SettingsService
from app.services.application.status_register import StatusRegister
from app.services.application.watering_decision_service import WateringDecisionService
from app.utils.emitters import EmitterService
from app.workers.unified_scheduler import UnifiedScheduler
from infrastructure.database.repositories.readings import ReadingRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    reading_repo: ReadingRepository
    settings_repo: SettingsRepository
    audit_logger: AuditLogger
    emitter: Optional[EmitterService]
    status_register: StatusRegister
    settings_service: SettingsService
    reading_service: ReadingService
    command_gateway: CommandGateway
    liveness_monitor: LivenessMonitor
    decision_service: WateringDecisionService
    scheduler: UnifiedScheduler
    _shutdown_complete: bool = field(default=False, init=False, repr=False)

    @classmethod
    def build(
        cls,
        config: AppConfig,
        *,
        start_scheduler: bool = False,
        emitter: Optional[EmitterService] = None,
    ) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            start_scheduler: Whether to start the background scheduler loop.
                Jobs are always registered so they can be inspected or run on demand.
            emitter: Socket.IO emitter for live dashboard pushes (optional)
        """
        logger.info("Building ServiceContainer...")
        audit_logger = AuditLogger(config.audit_log_path, config.log_level)
        database = SQLiteDatabaseHandler(config.database_path, timeout=config.db_timeout_seconds)
        database.init_app(None)

        reading_repo = ReadingRepository(database)
        settings_repo = SettingsRepository(database)
        settings_service = SettingsService(settings_repo, audit_logger=audit_logger)

        # Live mode starts from the stored mode so a restart does not silently revert to auto
        stored = settings_service.current()
        status_register = StatusRegister(
            initial_mode=stored.watering_mode,
            on_change=emitter.emit_system_status if emitter else None,
        )

        reading_service = ReadingService(
            reading_repo,
            status_register,
            on_reading=emitter.emit_sensor_reading if emitter else None,
        )
        command_gateway = CommandGateway(status_register, audit_logger=audit_logger)
        liveness_monitor = LivenessMonitor(
            status_register,
            offline_timeout=timedelta(seconds=config.offline_timeout_seconds),
        )
        decision_service = WateringDecisionService(
            status_register=status_register,
            settings_service=settings_service,
            reading_service=reading_service,
            command_gateway=command_gateway,
        )
        scheduler = UnifiedScheduler(max_workers=config.scheduler_max_workers)

        container = cls(
            config=config,
            database=database,
            reading_repo=reading_repo,
            settings_repo=settings_repo,
            audit_logger=audit_logger,
            emitter=emitter,
            status_register=status_register,
            settings_service=settings_service,
            reading_service=reading_service,
            command_gateway=command_gateway,
            liveness_monitor=liveness_monitor,
            decision_service=decision_service,
            scheduler=scheduler,
        )

        # Tasks need the full container, so the scheduler is configured last.
        from app.workers.scheduled_tasks import configure_scheduler

        try:
            configure_scheduler(container.scheduler, container, start=start_scheduler)
        except Exception as e:
            database.close()
            raise RuntimeError("Failed to initialize UnifiedScheduler") from e

        logger.info("ServiceContainer built (mode=%s, scheduler_started=%s)", stored.watering_mode.value, start_scheduler)
        return container

    def shutdown(self) -> None:
        """Stop background work, then close storage. Safe to call more than once."""
        if self._shutdown_complete:
            return
        self._shutdown_complete = True

        # In-flight jobs finish before the database goes away
        try:
            self.scheduler.shutdown(wait=True)
            logger.info("UnifiedScheduler stopped")
        except Exception as e:
            logger.warning(f"Failed to stop UnifiedScheduler: {e}")

        self.database.close()
        logger.info("ServiceContainer shutdown complete.")
