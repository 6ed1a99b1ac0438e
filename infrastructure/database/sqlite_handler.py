import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from flask import Flask

from app.domain.exceptions import PersistenceError
from infrastructure.database.ops.readings import ReadingOperations
from infrastructure.database.ops.settings import SettingsOperations

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class SQLiteDatabaseHandler(
    SettingsOperations,
    ReadingOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals.

    Every thread gets its own connection. Writes are serialised through a
    handler-wide lock so that ``close()`` can wait for in-flight writes.
    """

    def __init__(self, database_path: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = float(timeout)
        self._local = threading.local()
        self._write_lock = threading.RLock()
        self._registry_lock = threading.Lock()
        self._connections: List[sqlite3.Connection] = []
        self._closed = False

        if database_path == ":memory:":
            # Shared-cache URI so every thread sees the same in-memory database.
            self._database_path = f"file:plantcare_{id(self)}?mode=memory&cache=shared"
            self._uri = True
        else:
            self._database_path = database_path
            self._uri = False
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        if self._closed:
            raise PersistenceError("Database handle has been closed")
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.Error as exc:
                raise PersistenceError(f"Unable to open database: {exc}") from exc
            self._local.connection = connection
            with self._registry_lock:
                self._connections.append(connection)
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        # timeout bounds how long a call waits on a locked database
        connection = sqlite3.connect(
            self._database_path,
            timeout=self._timeout,
            check_same_thread=False,
            uri=self._uri,
        )
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """Configure SQLite connection with Raspberry Pi-friendly settings.

        - WAL mode: concurrent readers while one writer appends
        - NORMAL synchronous: safe with WAL, fewer fsyncs
        - busy_timeout: fail fast instead of hanging scheduler threads
        """
        if not self._uri:
            connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute(f"PRAGMA busy_timeout={int(self._timeout * 1000)}")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        """Per-request teardown. Connections are reused by the thread, so nothing to do
        beyond committing any implicit read transaction."""
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None and connection.in_transaction:
            connection.commit()

    def close(self) -> None:
        """Wait for in-flight writes, then release every connection."""
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
            with self._registry_lock:
                connections, self._connections = self._connections, []
            for connection in connections:
                try:
                    connection.close()
                except sqlite3.Error as exc:
                    logger.warning("Error closing database connection: %s", exc)
        logger.info("Database connections closed (%s)", len(connections))

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Read-side connection; commits on exit so WAL snapshots are not held open."""
        conn = self.get_db()
        try:
            yield conn
        finally:
            conn.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Serialised write: commits on success, rolls back on any error."""
        with self._write_lock:
            conn = self.get_db()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    # --- Schema ----------------------------------------------------------------
    def create_tables(self) -> None:
        """Creates the necessary tables in the database if they do not already exist."""
        try:
            with self.transaction() as db:
                # Append-only reading log
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SensorData (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        soil_humidity REAL NOT NULL,
                        temperature REAL NOT NULL,
                        air_humidity REAL NOT NULL,
                        pump_status TEXT NOT NULL CHECK (pump_status IN ('on', 'off')),
                        captured_at TIMESTAMP NOT NULL
                    )
                    """
                )
                db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_sensor_data_captured_at ON SensorData(captured_at)"
                )

                # Settings history; the latest row is the current record
                db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS WateringSettings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        humidity_threshold INTEGER NOT NULL DEFAULT 30,
                        watering_mode TEXT NOT NULL DEFAULT 'auto' CHECK (watering_mode IN ('auto', 'manual')),
                        scheduled_interval INTEGER NOT NULL DEFAULT 12,
                        last_updated TIMESTAMP NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to create tables: {exc}") from exc
        logger.info("Database schema ready")
