"""
PostgreSQL quarantine store.

Rows are inserted once and only ever updated by a single PENDING -> terminal
transition, enforced with a conditional UPDATE.
"""

from datetime import datetime

import psycopg
from psycopg.types.json import Jsonb

from golden_layer.core.exceptions import QuarantineError, StoreUnavailableError
from golden_layer.core.models import QuarantineRecord, QuarantineSummary, ResolutionStatus
from golden_layer.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .stores import QuarantineStore

logger = get_logger(__name__)

_INSERT_SQL = """
    INSERT INTO quarantine_record (
        target_entity, raw_payload, raw_record_id, source_native_id, batch_id, run_id,
        failed_rule, failure_detail, quarantined_at, quarantined_by, resolution_status
    )
    VALUES (
        %(target_entity)s, %(raw_payload)s, %(raw_record_id)s, %(source_native_id)s, %(batch_id)s,
        %(run_id)s, %(failed_rule)s, %(failure_detail)s, %(quarantined_at)s, %(quarantined_by)s,
        %(resolution_status)s
    )
    RETURNING quarantine_id
"""


class PostgresQuarantineStore(QuarantineStore):
    """Quarantine rows in the ``quarantine_record`` table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def append(self, records: list[QuarantineRecord]) -> list[QuarantineRecord]:
        """
        Insert a batch of quarantine rows in one transaction.

        Args:
            records: Rows to insert (quarantine_id is ignored)

        Returns:
            The rows with their assigned quarantine ids

        Raises:
            StoreUnavailableError: If the insert fails
        """
        if not records:
            return []

        stored: list[QuarantineRecord] = []
        try:
            with self.pool.transaction() as cur:
                for record in records:
                    params = record.model_dump(exclude={"quarantine_id"})
                    params["raw_payload"] = Jsonb(record.raw_payload)
                    cur.execute(_INSERT_SQL, params)
                    row = cur.fetchone()
                    stored.append(record.model_copy(update={"quarantine_id": row["quarantine_id"]}))
        except psycopg.Error as e:
            logger.error(f"Failed to write {len(records)} quarantine rows: {e}")
            raise StoreUnavailableError(f"Quarantine write failed: {e}") from e
        return stored

    def get(self, quarantine_id: int) -> QuarantineRecord | None:
        rows = self._query("SELECT * FROM quarantine_record WHERE quarantine_id = %s", (quarantine_id,))
        return QuarantineRecord(**rows[0]) if rows else None

    def find(
        self,
        target_entity: str | None = None,
        status: ResolutionStatus | None = None,
        run_id: str | None = None,
    ) -> list[QuarantineRecord]:
        clauses = []
        params: list = []
        if target_entity is not None:
            clauses.append("target_entity = %s")
            params.append(target_entity)
        if status is not None:
            clauses.append("resolution_status = %s")
            params.append(status)
        if run_id is not None:
            clauses.append("run_id = %s")
            params.append(run_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._query(f"SELECT * FROM quarantine_record {where} ORDER BY quarantine_id", tuple(params))
        return [QuarantineRecord(**r) for r in rows]

    def summary(self) -> list[QuarantineSummary]:
        rows = self._query(
            """
            SELECT
                target_entity,
                failed_rule,
                resolution_status,
                COUNT(*) AS row_count,
                MIN(quarantined_at) AS earliest,
                MAX(quarantined_at) AS latest
            FROM quarantine_record
            GROUP BY target_entity, failed_rule, resolution_status
            ORDER BY target_entity, failed_rule, resolution_status
            """,
            (),
        )
        return [QuarantineSummary(**r) for r in rows]

    def update_resolution(
        self,
        quarantine_id: int,
        status: ResolutionStatus,
        resolved_by: str,
        resolved_at: datetime,
        notes: str | None = None,
    ) -> QuarantineRecord:
        try:
            with self.pool.transaction() as cur:
                cur.execute(
                    """
                    UPDATE quarantine_record
                    SET resolution_status = %s,
                        resolved_by = %s,
                        resolved_at = %s,
                        resolution_notes = %s
                    WHERE quarantine_id = %s AND resolution_status = 'PENDING'
                    RETURNING *
                    """,
                    (status, resolved_by, resolved_at, notes, quarantine_id),
                )
                row = cur.fetchone()
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Quarantine update failed: {e}") from e

        if row is None:
            current = self.get(quarantine_id)
            if current is None:
                raise QuarantineError(f"Quarantine row {quarantine_id} does not exist")
            raise QuarantineError(
                f"Quarantine row {quarantine_id} is already {current.resolution_status}"
            )
        return QuarantineRecord(**row)

    def _query(self, query: str, params: tuple) -> list[dict]:
        try:
            return self.pool.execute_query(query, params)
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Quarantine query failed: {e}") from e
