"""
WebSocket Emitters
=====================================

Purpose:
    Push live status and fresh readings to connected dashboards over Socket.IO.

Events:
    - ``system_status`` on ``/system`` after every status register change
    - ``sensor_reading`` on ``/dashboard`` after each ingested reading
"""

import logging

from flask_socketio import SocketIO

from app.domain.readings import SensorReading
from app.domain.system import SystemStatus
from app.schemas.events import SensorReadingPayload, SystemStatusPayload

logger = logging.getLogger("emitters")

WS_EVENT_SYSTEM_STATUS = "system_status"
WS_EVENT_SENSOR_READING = "sensor_reading"

SOCKETIO_NAMESPACE_DASHBOARD = "/dashboard"
SOCKETIO_NAMESPACE_SYSTEM = "/system"


class EmitterService:
    """
    Broadcast-only Socket.IO emitter.

    Emit failures are logged and never raised: a dashboard push must not fail
    the ingestion or command that triggered it.
    """

    def __init__(self, sio: SocketIO):
        self.sio = sio

    def emit(
        self,
        event: str,
        payload: dict,
        room: str | None = None,
        namespace: str = "/",
    ):
        try:
            logger.debug("Emitting event='%s' namespace='%s' room='%s'", event, namespace, room or "broadcast")
            self.sio.emit(event, payload, room=room, namespace=namespace)
        except Exception as e:
            logger.exception("[Emitter] Failed to emit event '%s': %s", event, e)

    def emit_system_status(self, status: SystemStatus) -> None:
        payload = SystemStatusPayload(**status.to_dict())
        self.emit(
            event=WS_EVENT_SYSTEM_STATUS,
            payload=payload.model_dump(),
            namespace=SOCKETIO_NAMESPACE_SYSTEM,
        )

    def emit_sensor_reading(self, reading: SensorReading) -> None:
        payload = SensorReadingPayload(**reading.to_dict())
        self.emit(
            event=WS_EVENT_SENSOR_READING,
            payload=payload.model_dump(),
            namespace=SOCKETIO_NAMESPACE_DASHBOARD,
        )
