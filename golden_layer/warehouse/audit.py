"""
PostgreSQL run ledger store on the ``etl_run_log`` table.
"""

from datetime import datetime

import psycopg
from psycopg import errors as pg_errors

from golden_layer.core.exceptions import RunLedgerError, StoreUnavailableError
from golden_layer.core.models import PipelineRun, RunCounts, RunStatus
from golden_layer.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .stores import RunLedgerStore

logger = get_logger(__name__)

_INSERT_SQL = """
    INSERT INTO etl_run_log (
        run_id, pipeline_code, target_layer, target_entity, operation, batch_id, status,
        start_time, end_time, rows_read, rows_inserted, rows_updated, rows_unchanged,
        rows_deleted, rows_quarantined, error_message, executed_by
    )
    VALUES (
        %(run_id)s, %(pipeline_code)s, %(target_layer)s, %(target_entity)s, %(operation)s,
        %(batch_id)s, %(status)s, %(start_time)s, %(end_time)s, %(rows_read)s, %(rows_inserted)s,
        %(rows_updated)s, %(rows_unchanged)s, %(rows_deleted)s, %(rows_quarantined)s,
        %(error_message)s, %(executed_by)s
    )
"""

# Only a RUNNING row matches, so a second seal updates nothing
_SEAL_SQL = """
    UPDATE etl_run_log
    SET status = %(status)s,
        end_time = %(end_time)s,
        rows_read = %(read)s,
        rows_inserted = %(inserted)s,
        rows_updated = %(updated)s,
        rows_unchanged = %(unchanged)s,
        rows_deleted = %(deleted)s,
        rows_quarantined = %(quarantined)s,
        error_message = %(error)s
    WHERE run_id = %(run_id)s AND status = 'RUNNING'
    RETURNING *
"""


class PostgresRunLedgerStore(RunLedgerStore):
    """Pipeline runs persisted in PostgreSQL."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def insert(self, run: PipelineRun) -> None:
        """
        Insert a new run row.

        Raises:
            RunLedgerError: If the run id already exists
            StoreUnavailableError: If the insert fails
        """
        try:
            self.pool.execute_command(_INSERT_SQL, run.model_dump())
        except pg_errors.UniqueViolation as e:
            raise RunLedgerError(f"Run {run.run_id} already exists") from e
        except psycopg.Error as e:
            logger.error(f"Failed to insert run {run.run_id}: {e}")
            raise StoreUnavailableError(f"Run ledger insert failed: {e}") from e

    def get(self, run_id: str) -> PipelineRun | None:
        rows = self._query("SELECT * FROM etl_run_log WHERE run_id = %s", (run_id,))
        return PipelineRun(**rows[0]) if rows else None

    def seal(
        self,
        run_id: str,
        status: RunStatus,
        counts: RunCounts,
        error: str | None,
        end_time: datetime,
    ) -> PipelineRun:
        params = {"run_id": run_id, "status": status, "end_time": end_time, "error": error, **counts.model_dump()}
        try:
            with self.pool.transaction() as cur:
                cur.execute(_SEAL_SQL, params)
                row = cur.fetchone()
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Run ledger seal failed: {e}") from e

        if row is None:
            if self.get(run_id) is None:
                raise RunLedgerError(f"Unknown run {run_id}")
            raise RunLedgerError(f"Run {run_id} is already sealed")
        return PipelineRun(**row)

    def recent(self, limit: int = 50) -> list[PipelineRun]:
        rows = self._query("SELECT * FROM etl_run_log ORDER BY start_time DESC LIMIT %s", (limit,))
        return [PipelineRun(**r) for r in rows]

    def running(self) -> list[PipelineRun]:
        rows = self._query(
            "SELECT * FROM etl_run_log WHERE status = 'RUNNING' ORDER BY start_time",
            (),
        )
        return [PipelineRun(**r) for r in rows]

    def _query(self, query: str, params: tuple) -> list[dict]:
        try:
            return self.pool.execute_query(query, params)
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Run ledger query failed: {e}") from e
