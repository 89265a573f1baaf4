"""
Change-detecting upsert for conformed records.

``plan_upsert`` classifies an incoming batch against the rows already stored
(insert, update, unchanged) and enforces the enterprise-key binding
invariant. Both backends apply the plan inside their own atomic boundary.
"""

from typing import NamedTuple

import psycopg
from psycopg.types.json import Jsonb

from golden_layer.core.exceptions import InvariantViolation, StoreUnavailableError
from golden_layer.core.models import ConformedRecord, UpsertMode, UpsertResult
from golden_layer.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .stores import ConformedStore

logger = get_logger(__name__)

# enterprise_key -> (source_native_id, row_hash)
ExistingIndex = dict[str, tuple[str | None, str]]


class UpsertPlan(NamedTuple):
    inserts: list[ConformedRecord]
    updates: list[ConformedRecord]
    unchanged: list[ConformedRecord]


def plan_upsert(entity_type: str, incoming: list[ConformedRecord], existing: ExistingIndex) -> UpsertPlan:
    """
    Classify a batch against stored rows.

    Args:
        entity_type: Entity type of the batch
        incoming: Validated records to write
        existing: Stored binding and hash per enterprise key

    Returns:
        UpsertPlan with new, changed and identical records

    Raises:
        InvariantViolation: If a record belongs to another entity type, the
            batch binds one enterprise key to two source identifiers, or a
            stored key would be re-bound to a different source identifier
    """
    batch: dict[str, ConformedRecord] = {}
    for record in incoming:
        if record.entity_type != entity_type:
            raise InvariantViolation(
                f"Record {record.enterprise_key} is a {record.entity_type}, batch is {entity_type}"
            )
        previous = batch.get(record.enterprise_key)
        if previous is not None and previous.source_native_id != record.source_native_id:
            raise InvariantViolation(
                f"{entity_type} key {record.enterprise_key} bound to both "
                f"'{previous.source_native_id}' and '{record.source_native_id}' in one batch"
            )
        batch[record.enterprise_key] = record

    plan = UpsertPlan([], [], [])
    for key, record in batch.items():
        stored = existing.get(key)
        if stored is None:
            plan.inserts.append(record)
            continue
        stored_native_id, stored_hash = stored
        if stored_native_id != record.source_native_id:
            raise InvariantViolation(
                f"{entity_type} key {key} is bound to '{stored_native_id}', "
                f"refusing to re-bind it to '{record.source_native_id}'"
            )
        if stored_hash == record.row_hash:
            plan.unchanged.append(record)
        else:
            plan.updates.append(record)
    return plan


_UPSERT_SQL = """
    INSERT INTO conformed_record (
        entity_type, enterprise_key, attributes, source_native_id, source_system_id,
        raw_record_id, source_modified_at, row_hash, conformed_at, conformed_by
    )
    VALUES (
        %(entity_type)s, %(enterprise_key)s, %(attributes)s, %(source_native_id)s, %(source_system_id)s,
        %(raw_record_id)s, %(source_modified_at)s, %(row_hash)s, %(conformed_at)s, %(conformed_by)s
    )
    ON CONFLICT (entity_type, enterprise_key) DO UPDATE SET
        attributes = EXCLUDED.attributes,
        raw_record_id = EXCLUDED.raw_record_id,
        source_modified_at = EXCLUDED.source_modified_at,
        row_hash = EXCLUDED.row_hash,
        conformed_at = EXCLUDED.conformed_at,
        conformed_by = EXCLUDED.conformed_by
"""


def _to_params(record: ConformedRecord) -> dict:
    params = record.model_dump()
    # Decimals and dates become JSON strings
    params["attributes"] = Jsonb(record.model_dump(mode="json")["attributes"])
    return params


def _from_row(row: dict) -> ConformedRecord:
    return ConformedRecord(
        entity_type=row["entity_type"],
        enterprise_key=row["enterprise_key"],
        attributes=row["attributes"],
        source_native_id=row["source_native_id"],
        source_system_id=row["source_system_id"],
        raw_record_id=row["raw_record_id"],
        source_modified_at=row["source_modified_at"],
        row_hash=row["row_hash"],
        conformed_at=row["conformed_at"],
        conformed_by=row["conformed_by"],
    )


class PostgresConformedStore(ConformedStore):
    """
    Conformed records in the ``conformed_record`` table.

    A batch runs in one transaction: the affected keys are locked with
    SELECT ... FOR UPDATE, classified by ``plan_upsert`` and written with
    INSERT ... ON CONFLICT. REBUILD deletes the entity's rows inside the same
    transaction. Unchanged rows are not rewritten.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize the store.

        Args:
            pool: Open database connection pool
        """
        self.pool = pool

    def get(self, entity_type: str, enterprise_key: str) -> ConformedRecord | None:
        rows = self._query(
            "SELECT * FROM conformed_record WHERE entity_type = %s AND enterprise_key = %s",
            (entity_type, enterprise_key),
        )
        return _from_row(rows[0]) if rows else None

    def exists(self, entity_type: str, enterprise_key: str) -> bool:
        rows = self._query(
            "SELECT 1 AS found FROM conformed_record WHERE entity_type = %s AND enterprise_key = %s",
            (entity_type, enterprise_key),
        )
        return bool(rows)

    def list_records(self, entity_type: str) -> list[ConformedRecord]:
        rows = self._query(
            "SELECT * FROM conformed_record WHERE entity_type = %s ORDER BY enterprise_key",
            (entity_type,),
        )
        return [_from_row(r) for r in rows]

    def count(self, entity_type: str) -> int:
        rows = self._query(
            "SELECT COUNT(*) AS n FROM conformed_record WHERE entity_type = %s",
            (entity_type,),
        )
        return rows[0]["n"]

    def apply_batch(
        self,
        entity_type: str,
        records: list[ConformedRecord],
        mode: UpsertMode = "MERGE",
    ) -> UpsertResult:
        """
        Apply a batch in a single transaction.

        Raises:
            InvariantViolation: If an enterprise key would be re-bound (the
                transaction is rolled back)
            StoreUnavailableError: If PostgreSQL fails
        """
        keys = [r.enterprise_key for r in records]
        try:
            with self.pool.transaction() as cur:
                deleted = 0
                existing: ExistingIndex = {}
                if mode == "REBUILD":
                    cur.execute(
                        "DELETE FROM conformed_record WHERE entity_type = %s",
                        (entity_type,),
                    )
                    deleted = cur.rowcount
                elif keys:
                    cur.execute(
                        """
                        SELECT enterprise_key, source_native_id, row_hash
                        FROM conformed_record
                        WHERE entity_type = %s AND enterprise_key = ANY(%s)
                        ORDER BY enterprise_key
                        FOR UPDATE
                        """,
                        (entity_type, keys),
                    )
                    existing = {
                        row["enterprise_key"]: (row["source_native_id"], row["row_hash"])
                        for row in cur.fetchall()
                    }

                plan = plan_upsert(entity_type, records, existing)
                changed = plan.inserts + plan.updates
                if changed:
                    cur.executemany(_UPSERT_SQL, [_to_params(r) for r in changed])
        except psycopg.Error as e:
            logger.error(f"Upsert of {entity_type} failed: {e}")
            raise StoreUnavailableError(f"Upsert of {entity_type} failed: {e}") from e

        result = UpsertResult(
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            unchanged=len(plan.unchanged),
            deleted=deleted,
        )
        logger.debug(
            f"Upserted {entity_type}: {result.inserted} inserted, {result.updated} updated, "
            f"{result.unchanged} unchanged, {result.deleted} deleted"
        )
        return result

    def _query(self, query: str, params: tuple) -> list[dict]:
        try:
            return self.pool.execute_query(query, params)
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Conformed store query failed: {e}") from e
