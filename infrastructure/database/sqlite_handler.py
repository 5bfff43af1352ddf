import logging
import shutil
import sqlite3
import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from flask import Flask

from infrastructure.database.ops.analysis_history import AnalysisHistoryOperations
from infrastructure.database.ops.settings import SettingsOperations
from infrastructure.database.ops.soil_readings import SoilReadingOperations

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"


class SQLiteDatabaseHandler(
    SoilReadingOperations,
    AnalysisHistoryOperations,
    SettingsOperations,
):
    """Thread-safe SQLite handler decoupled from Flask globals.

    File databases get one connection per thread. ``":memory:"`` databases
    share a single connection guarded by a lock, since every new connection
    to ``:memory:`` would open a different, empty database.
    """

    def __init__(self, database_path: str) -> None:
        self._database_path = database_path
        self._local = threading.local()
        self._lock = threading.RLock()
        self._shared: Optional[sqlite3.Connection] = None

        if database_path == MEMORY_DATABASE:
            self._shared = self._open_connection()
        else:
            db_path = Path(database_path)
            if not db_path.parent.exists():
                db_path.parent.mkdir(parents=True, exist_ok=True)
                logger.info("Created database directory: %s", db_path.parent)

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    def init_app(self, app: Flask | None = None) -> None:
        if app is not None:
            app.teardown_appcontext(self.close_db)
        self.create_tables()

    def get_db(self) -> sqlite3.Connection:
        if self._shared is not None:
            return self._shared

        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is None:
            try:
                connection = self._open_connection()
            except sqlite3.DatabaseError as exc:
                if self._is_corruption_error(exc):
                    logger.error("Database appears corrupt (%s). Recreating a fresh database.", exc)
                    self._quarantine_corrupt_db()
                    connection = self._open_connection()
                else:
                    raise
            self._local.connection = connection
        return connection

    def _open_connection(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path, check_same_thread=False)
        try:
            connection.row_factory = sqlite3.Row
            self._configure_connection(connection)
            return connection
        except Exception:
            connection.close()
            raise

    def _is_corruption_error(self, exc: sqlite3.Error) -> bool:
        message = str(exc).lower()
        return (
            "database disk image is malformed" in message
            or "file is not a database" in message
            or "malformed" in message
        )

    def _quarantine_corrupt_db(self) -> Optional[Path]:
        db_path = Path(self._database_path)
        if not db_path.exists():
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        quarantine_dir = db_path.parent / "corrupt"
        quarantine_dir.mkdir(parents=True, exist_ok=True)

        suffix = db_path.suffix or ".db"
        quarantined = quarantine_dir / f"{db_path.stem}_corrupt_{timestamp}{suffix}"
        try:
            shutil.move(str(db_path), str(quarantined))
            for sidecar_suffix in ("-wal", "-shm"):
                sidecar = Path(f"{db_path}{sidecar_suffix}")
                if sidecar.exists():
                    shutil.move(str(sidecar), str(quarantine_dir / f"{sidecar.name}_{timestamp}"))
            logger.warning("Quarantined corrupt database to %s", quarantined)
            return quarantined
        except OSError as exc:
            logger.error("Failed to quarantine corrupt database %s: %s", db_path, exc)
            return None

    def _configure_connection(self, connection: sqlite3.Connection) -> None:
        """WAL for concurrent dashboard reads while the node keeps writing."""
        if self._database_path != MEMORY_DATABASE:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA synchronous=NORMAL")
        connection.execute("PRAGMA cache_size=-8000")  # 8MB (negative = KB)
        connection.execute("PRAGMA temp_store=MEMORY")
        connection.commit()

    def close_db(self, _e: Optional[BaseException] = None) -> None:
        if self._shared is not None:
            return
        connection: Optional[sqlite3.Connection] = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            delattr(self._local, "connection")

    def close(self) -> None:
        """Close every connection owned by the calling thread (and the shared one)."""
        if self._shared is not None:
            self._shared.close()
            self._shared = None
            return
        self.close_db()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        with self._lock if self._shared is not None else nullcontext():
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
        with self.connection() as db:
            db.execute(
                """
                CREATE TABLE IF NOT EXISTS SoilReadings (
                    reading_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    moisture REAL NOT NULL,
                    raw_adc INTEGER NOT NULL DEFAULT 0,
                    pump_status TEXT NOT NULL DEFAULT 'OFF' CHECK (pump_status IN ('ON', 'OFF')),
                    timestamp INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            db.execute("CREATE INDEX IF NOT EXISTS idx_soil_readings_timestamp ON SoilReadings(timestamp)")

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS EnvironmentSnapshot (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    temperature REAL,
                    humidity REAL,
                    raining INTEGER NOT NULL DEFAULT 0,
                    status TEXT,
                    timestamp INTEGER NOT NULL
                )
                """
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS AnalysisHistory (
                    history_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    time_range TEXT NOT NULL,
                    source TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            db.execute(
                """
                CREATE TABLE IF NOT EXISTS Settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
        logger.info("Database schema ready at %s", self._database_path)

