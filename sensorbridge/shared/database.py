"""Database configuration, connection pooling and sensor storage."""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

import pymysql
from pymysql.cursors import DictCursor

from .models import SensorReading, TemperatureStats

logger = logging.getLogger(__name__)

INSERT_READING_SQL = "INSERT INTO data_sensor (suhu, humidity) VALUES (%s, %s)"

UPDATE_LATEST_BRIGHTNESS_SQL = (
    "UPDATE data_sensor SET lux = %s ORDER BY id DESC LIMIT 1"
)

AGGREGATE_STATS_SQL = """
    SELECT
        MAX(suhu) AS suhumax,
        MIN(suhu) AS suhumin,
        ROUND(AVG(suhu), 2) AS suhurata
    FROM data_sensor
"""

# '%' is doubled because the statement is executed with parameters
RECENT_READINGS_SQL = """
    SELECT id, suhu, humidity, lux AS kecerahan,
        DATE_FORMAT(timestamp, '%%Y-%%m-%%d %%H:%%i:%%s') AS waktu
    FROM data_sensor
    ORDER BY id DESC
    LIMIT %s
"""


class PersistenceError(Exception):
    """Raised when the store is unreachable or a statement fails."""

    pass


def describe_error(error: Exception) -> str:
    """Human readable message for a pymysql error.

    pymysql errors carry (errno, message) in args; callers only want the
    message.
    """
    if isinstance(error, pymysql.MySQLError) and len(error.args) >= 2:
        return str(error.args[1])
    return str(error)


@dataclass(frozen=True)
class DBConfig:
    """Database connection configuration."""
    host: str = "localhost"
    user: str = "root"
    password: str = ""
    database: str = "iot_uts"
    port: int = 3306
    pool_size: int = 5
    acquire_timeout: float = 10.0

    @classmethod
    def from_env(cls, pool_size: int = 5, acquire_timeout: float = 10.0) -> "DBConfig":
        """Create config from environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            user=os.getenv("DB_USER", "root"),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_DATABASE", "iot_uts"),
            port=int(os.getenv("DB_PORT", "3306")),
            pool_size=pool_size,
            acquire_timeout=acquire_timeout,
        )


class ConnectionPool:
    """Bounded pool of MySQL connections.

    At most ``pool_size`` connections exist at once. Connections are handed
    out through ``connection()``, which always gives the slot back, and a
    connection that raised is closed rather than reused.
    """

    def __init__(self, db_config: DBConfig):
        if db_config.pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        self.db_config = db_config
        self._slots = threading.BoundedSemaphore(db_config.pool_size)
        self._idle: List[pymysql.Connection] = []
        self._lock = threading.Lock()
        self._closed = False

    def _connect(self) -> pymysql.Connection:
        return pymysql.connect(
            host=self.db_config.host,
            user=self.db_config.user,
            password=self.db_config.password,
            database=self.db_config.database,
            port=self.db_config.port,
            cursorclass=DictCursor,
            autocommit=True,
        )

    def _checkout(self) -> pymysql.Connection:
        with self._lock:
            if self._closed:
                raise PersistenceError("Connection pool is closed")
            conn = self._idle.pop() if self._idle else None
        # pymysql raises RuntimeError when an auth plugin dependency is missing
        try:
            if conn is None:
                logger.debug(f"Opening database connection to {self.db_config.host}")
                return self._connect()
            conn.ping(reconnect=True)
            return conn
        except Exception as e:
            if conn is not None:
                self._discard(conn)
            raise PersistenceError(describe_error(e)) from e

    def _checkin(self, conn: pymysql.Connection, healthy: bool):
        with self._lock:
            if healthy and not self._closed:
                self._idle.append(conn)
                return
        self._discard(conn)

    @staticmethod
    def _discard(conn: pymysql.Connection):
        try:
            conn.close()
        except pymysql.MySQLError as e:
            logger.debug(f"Error closing database connection: {e}")

    @contextmanager
    def connection(self) -> Iterator[pymysql.Connection]:
        """Scoped acquisition of a pooled connection.

        Raises:
            PersistenceError: If no slot frees up within acquire_timeout, the
                pool is closed, connecting fails, or pymysql raises inside the
                block.
        """
        if not self._slots.acquire(timeout=self.db_config.acquire_timeout):
            raise PersistenceError("Timed out waiting for a database connection")

        conn: Optional[pymysql.Connection] = None
        healthy = False
        try:
            conn = self._checkout()
            yield conn
            healthy = True
        except pymysql.MySQLError as e:
            raise PersistenceError(describe_error(e)) from e
        finally:
            if conn is not None:
                self._checkin(conn, healthy)
            self._slots.release()

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    def close(self):
        """Close idle connections; busy ones are closed when returned."""
        with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []
        for conn in idle:
            self._discard(conn)


class SensorStore:
    """Reads and writes the data_sensor table.

    Every method is a single parameterized statement run on its own pooled
    connection.
    """

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def insert_reading(self, temperature: float, humidity: float) -> int:
        """Create a reading row with brightness unset.

        Returns:
            The id assigned by the store.
        """
        with self.pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(INSERT_READING_SQL, (temperature, humidity))
                return cursor.lastrowid

    def update_latest_brightness(self, brightness: float) -> int:
        """Set lux on the most recently created row.

        Returns:
            Number of rows changed; 0 when the table is empty.
        """
        with self.pool.connection() as conn:
            with conn.cursor() as cursor:
                return cursor.execute(UPDATE_LATEST_BRIGHTNESS_SQL, (brightness,))

    def aggregate_stats(self) -> TemperatureStats:
        """Max, min and average (2 decimals) of every stored temperature."""
        with self.pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(AGGREGATE_STATS_SQL)
                return TemperatureStats.from_row(cursor.fetchone())

    def recent_readings(self, limit: int = 10) -> List[SensorReading]:
        """The ``limit`` most recent readings, newest first."""
        if limit < 1:
            raise ValueError("limit must be positive")
        with self.pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(RECENT_READINGS_SQL, (limit,))
                return [SensorReading.from_row(row) for row in cursor.fetchall()]

    def close(self):
        """Close the underlying connection pool."""
        self.pool.close()
