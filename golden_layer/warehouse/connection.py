"""
Pooled PostgreSQL connections for the golden-layer stores (psycopg3).

Every store shares one ``DatabaseConnectionPool``. Reads go through
``execute_query``; multi-statement writes use ``transaction`` so a batch
commits or rolls back as a whole.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from golden_layer.observability.logger import get_logger

logger = get_logger(__name__)

APPLICATION_NAME = "golden-layer"


class DatabaseConnectionPool:
    """
    Connection pool for the silver-layer database.

    Rows come back as dictionaries (``dict_row``). Parameters left as None
    fall back to the DB_* environment variables.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 2,
        max_size: int = 10,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host: Database host (DB_HOST)
            port: Database port (DB_PORT)
            database: Database name (DB_NAME)
            user: Database user (DB_USER)
            password: Database password (DB_PASSWORD)
            min_size: Connections kept open
            max_size: Upper bound on open connections
            timeout: Seconds to wait for a connection

        Raises:
            ValueError: If no password is configured
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "datawarehouse")
        self.user = user or os.getenv("DB_USER", "pipeline")
        password = password or os.getenv("DB_PASSWORD")
        if not password:
            raise ValueError("Database password must be provided via DB_PASSWORD or the password argument")

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self.conninfo = make_conninfo(
            "",
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=password,
            connect_timeout=int(self.timeout),
            application_name=APPLICATION_NAME,
        )
        self._pool: ConnectionPool | None = None

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "DatabaseConnectionPool":
        """Pool for ``Settings``; kwargs override min_size, max_size or timeout."""
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
            **kwargs,
        )

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the database is unreachable.

        The wait between attempts grows linearly (retry_delay, 2 * retry_delay, ...).

        Raises:
            OperationalError: If every attempt fails
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        target = f"{self.host}:{self.port}/{self.database}"

        for attempt in range(1, max_retries + 1):
            try:
                pool.open(wait=True, timeout=self.timeout)
            except (OperationalError, TimeoutError) as e:
                if attempt == max_retries:
                    pool.close()
                    raise OperationalError(f"Could not connect to {target} after {attempt} attempts: {e}") from e
                logger.warning(f"Connection to {target} failed (attempt {attempt}/{max_retries}): {e}")
                time.sleep(retry_delay * attempt)
            else:
                self._pool = pool
                logger.info(f"Connection pool open: {target} ({self.min_size}-{self.max_size} connections)")
                return

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; it goes back to the pool when the block exits.

        Raises:
            RuntimeError: If the pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")
        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self):
        """
        Cursor inside a single transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises, whatever the exception type.
        """
        with self.get_connection() as conn:
            with conn.transaction():
                with conn.cursor() as cur:
                    yield cur

    def execute_query(self, query: str, params: tuple | dict | None = None) -> list[dict]:
        """Run a SELECT and return its rows."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchall()

    def execute_command(self, command: str, params: tuple | dict | None = None) -> int:
        """Run one INSERT/UPDATE/DELETE in its own transaction and return the affected row count."""
        with self.transaction() as cur:
            cur.execute(command, params)
            return cur.rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
