"""
PostgreSQL raw record source on the ``raw_record`` table.
"""

import psycopg
from psycopg.types.json import Jsonb

from golden_layer.core.exceptions import StoreUnavailableError
from golden_layer.core.models import RawRecord

from .connection import DatabaseConnectionPool
from .stores import RawRecordSource


class PostgresRawRecordSource(RawRecordSource):
    """Raw records read in landing order (``ingest_seq``)."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def fetch(
        self,
        stream: str,
        record_type: str | None = None,
        batch_id: str | None = None,
    ) -> list[RawRecord]:
        clauses = ["stream = %s"]
        params: list = [stream]
        if record_type is not None:
            clauses.append("record_type = %s")
            params.append(record_type)
        if batch_id is not None:
            clauses.append("batch_id = %s")
            params.append(batch_id)

        query = f"""
            SELECT record_id, stream, record_type, batch_id, ingested_at, source_file, payload
            FROM raw_record
            WHERE {' AND '.join(clauses)}
            ORDER BY ingest_seq
        """
        try:
            rows = self.pool.execute_query(query, tuple(params))
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Raw record fetch failed: {e}") from e
        return [RawRecord(**r) for r in rows]

    def land(self, records: list[RawRecord]) -> int:
        if not records:
            return 0
        try:
            with self.pool.transaction() as cur:
                cur.executemany(
                    """
                    INSERT INTO raw_record (
                        record_id, stream, record_type, batch_id, ingested_at, source_file, payload
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    [
                        (r.record_id, r.stream, r.record_type, r.batch_id, r.ingested_at, r.source_file, Jsonb(r.payload))
                        for r in records
                    ],
                )
        except psycopg.Error as e:
            raise StoreUnavailableError(f"Raw record landing failed: {e}") from e
        return len(records)
