"""
DDL for the PostgreSQL backend.

``ensure_schema`` is idempotent and safe to call on every start.
"""

from .connection import DatabaseConnectionPool

RAW_RECORD_DDL = """
CREATE TABLE IF NOT EXISTS raw_record (
    ingest_seq      BIGSERIAL,
    record_id       TEXT PRIMARY KEY,
    stream          TEXT NOT NULL,
    record_type     TEXT,
    batch_id        TEXT NOT NULL,
    ingested_at     TIMESTAMPTZ NOT NULL,
    source_file     TEXT,
    payload         JSONB NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_raw_record_stream
    ON raw_record (stream, record_type, batch_id);
"""

CONFORMED_RECORD_DDL = """
CREATE TABLE IF NOT EXISTS conformed_record (
    entity_type         TEXT NOT NULL,
    enterprise_key      TEXT NOT NULL,
    attributes          JSONB NOT NULL,
    source_native_id    TEXT,
    source_system_id    INTEGER NOT NULL,
    raw_record_id       TEXT NOT NULL,
    source_modified_at  TIMESTAMPTZ NOT NULL,
    row_hash            CHAR(64) NOT NULL,
    conformed_at        TIMESTAMPTZ NOT NULL,
    conformed_by        TEXT NOT NULL,
    PRIMARY KEY (entity_type, enterprise_key)
);
"""

QUARANTINE_RECORD_DDL = """
CREATE TABLE IF NOT EXISTS quarantine_record (
    quarantine_id       BIGSERIAL PRIMARY KEY,
    target_entity       TEXT NOT NULL,
    raw_payload         JSONB NOT NULL,
    raw_record_id       TEXT,
    source_native_id    TEXT,
    batch_id            TEXT,
    run_id              TEXT,
    failed_rule         TEXT NOT NULL,
    failure_detail      TEXT NOT NULL,
    quarantined_at      TIMESTAMPTZ NOT NULL,
    quarantined_by      TEXT NOT NULL,
    resolution_status   TEXT NOT NULL DEFAULT 'PENDING'
        CHECK (resolution_status IN ('PENDING', 'RESOLVED', 'REJECTED', 'REPROCESSED')),
    resolved_at         TIMESTAMPTZ,
    resolved_by         TEXT,
    resolution_notes    TEXT
);
CREATE INDEX IF NOT EXISTS idx_quarantine_entity_status
    ON quarantine_record (target_entity, resolution_status);
"""

ETL_RUN_LOG_DDL = """
CREATE TABLE IF NOT EXISTS etl_run_log (
    run_id              TEXT PRIMARY KEY,
    pipeline_code       TEXT NOT NULL,
    target_layer        TEXT NOT NULL,
    target_entity       TEXT NOT NULL,
    operation           TEXT NOT NULL,
    batch_id            TEXT,
    status              TEXT NOT NULL
        CHECK (status IN ('RUNNING', 'SUCCEEDED', 'FAILED')),
    start_time          TIMESTAMPTZ NOT NULL,
    end_time            TIMESTAMPTZ,
    rows_read           INTEGER NOT NULL DEFAULT 0,
    rows_inserted       INTEGER NOT NULL DEFAULT 0,
    rows_updated        INTEGER NOT NULL DEFAULT 0,
    rows_unchanged      INTEGER NOT NULL DEFAULT 0,
    rows_deleted        INTEGER NOT NULL DEFAULT 0,
    rows_quarantined    INTEGER NOT NULL DEFAULT 0,
    error_message       TEXT,
    executed_by         TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_etl_run_log_start ON etl_run_log (start_time DESC);
"""

ALL_DDL = [RAW_RECORD_DDL, CONFORMED_RECORD_DDL, QUARANTINE_RECORD_DDL, ETL_RUN_LOG_DDL]

TABLES = ["raw_record", "conformed_record", "quarantine_record", "etl_run_log"]


def ensure_schema(pool: DatabaseConnectionPool) -> None:
    """Create every table and index that does not exist yet."""
    with pool.transaction() as cur:
        for ddl in ALL_DDL:
            cur.execute(ddl)
