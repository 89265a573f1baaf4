"""
In-memory implementations of the storage interfaces.

Used by tests and by single-process runs that do not need PostgreSQL. Every
store is thread safe. The conformed store applies a batch by building a full
copy of the entity's table and swapping it in under the lock, so readers
never observe a half-applied batch.
"""

import itertools
import threading
from collections import defaultdict
from datetime import datetime

from golden_layer.core.exceptions import QuarantineError, RunLedgerError
from golden_layer.core.models import (
    ConformedRecord,
    PipelineRun,
    QuarantineRecord,
    QuarantineSummary,
    RawRecord,
    ResolutionStatus,
    RunCounts,
    RunStatus,
    UpsertMode,
    UpsertResult,
)

from .stores import ConformedStore, QuarantineStore, RawRecordSource, RunLedgerStore
from .upsert import plan_upsert


class InMemoryRawRecordSource(RawRecordSource):
    def __init__(self, records: list[RawRecord] | None = None):
        self._lock = threading.RLock()
        self._records: list[RawRecord] = []
        self._ids: set[str] = set()
        if records:
            self.land(records)

    def fetch(
        self,
        stream: str,
        record_type: str | None = None,
        batch_id: str | None = None,
    ) -> list[RawRecord]:
        with self._lock:
            snapshot = list(self._records)
        return [
            r for r in snapshot
            if r.stream == stream
            and (record_type is None or r.record_type == record_type)
            and (batch_id is None or r.batch_id == batch_id)
        ]

    def land(self, records: list[RawRecord]) -> int:
        """
        Append raw records.

        Raises:
            ValueError: If a record id was already landed
        """
        with self._lock:
            for record in records:
                if record.record_id in self._ids:
                    raise ValueError(f"Raw record {record.record_id} already landed")
            for record in records:
                self._ids.add(record.record_id)
                self._records.append(record)
        return len(records)


class InMemoryConformedStore(ConformedStore):
    """Conformed records held per entity type in immutable-by-convention dicts."""

    def __init__(self):
        self._lock = threading.RLock()
        self._tables: dict[str, dict[str, ConformedRecord]] = {}

    def get(self, entity_type: str, enterprise_key: str) -> ConformedRecord | None:
        return self._tables.get(entity_type, {}).get(enterprise_key)

    def list_records(self, entity_type: str) -> list[ConformedRecord]:
        table = self._tables.get(entity_type, {})
        return [table[k] for k in sorted(table)]

    def count(self, entity_type: str) -> int:
        return len(self._tables.get(entity_type, {}))

    def apply_batch(
        self,
        entity_type: str,
        records: list[ConformedRecord],
        mode: UpsertMode = "MERGE",
    ) -> UpsertResult:
        with self._lock:
            current = self._tables.get(entity_type, {})
            deleted = 0
            if mode == "REBUILD":
                deleted = len(current)
                current = {}

            existing = {k: (r.source_native_id, r.row_hash) for k, r in current.items()}
            plan = plan_upsert(entity_type, records, existing)

            table = dict(current)
            for record in plan.inserts + plan.updates:
                table[record.enterprise_key] = record
            self._tables[entity_type] = table

        return UpsertResult(
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            unchanged=len(plan.unchanged),
            deleted=deleted,
        )


class InMemoryQuarantineStore(QuarantineStore):
    def __init__(self):
        self._lock = threading.RLock()
        self._rows: dict[int, QuarantineRecord] = {}
        self._ids = itertools.count(1)

    def append(self, records: list[QuarantineRecord]) -> list[QuarantineRecord]:
        with self._lock:
            stored = [r.model_copy(update={"quarantine_id": next(self._ids)}) for r in records]
            for record in stored:
                self._rows[record.quarantine_id] = record
        return stored

    def get(self, quarantine_id: int) -> QuarantineRecord | None:
        return self._rows.get(quarantine_id)

    def find(
        self,
        target_entity: str | None = None,
        status: ResolutionStatus | None = None,
        run_id: str | None = None,
    ) -> list[QuarantineRecord]:
        with self._lock:
            rows = sorted(self._rows.values(), key=lambda r: r.quarantine_id)
        return [
            r for r in rows
            if (target_entity is None or r.target_entity == target_entity)
            and (status is None or r.resolution_status == status)
            and (run_id is None or r.run_id == run_id)
        ]

    def summary(self) -> list[QuarantineSummary]:
        groups: dict[tuple[str, str, str], list[QuarantineRecord]] = defaultdict(list)
        for row in self.find():
            groups[(row.target_entity, row.failed_rule, row.resolution_status)].append(row)
        return [
            QuarantineSummary(
                target_entity=entity,
                failed_rule=rule,
                resolution_status=status,
                row_count=len(rows),
                earliest=min(r.quarantined_at for r in rows),
                latest=max(r.quarantined_at for r in rows),
            )
            for (entity, rule, status), rows in sorted(groups.items())
        ]

    def update_resolution(
        self,
        quarantine_id: int,
        status: ResolutionStatus,
        resolved_by: str,
        resolved_at: datetime,
        notes: str | None = None,
    ) -> QuarantineRecord:
        with self._lock:
            current = self._rows.get(quarantine_id)
            if current is None:
                raise QuarantineError(f"Quarantine row {quarantine_id} does not exist")
            if not current.is_pending:
                raise QuarantineError(
                    f"Quarantine row {quarantine_id} is already {current.resolution_status}"
                )
            updated = current.model_copy(update={
                "resolution_status": status,
                "resolved_by": resolved_by,
                "resolved_at": resolved_at,
                "resolution_notes": notes,
            })
            self._rows[quarantine_id] = updated
        return updated


class InMemoryRunLedgerStore(RunLedgerStore):
    def __init__(self):
        self._lock = threading.RLock()
        self._runs: dict[str, PipelineRun] = {}

    def insert(self, run: PipelineRun) -> None:
        with self._lock:
            if run.run_id in self._runs:
                raise RunLedgerError(f"Run {run.run_id} already exists")
            self._runs[run.run_id] = run

    def get(self, run_id: str) -> PipelineRun | None:
        return self._runs.get(run_id)

    def seal(
        self,
        run_id: str,
        status: RunStatus,
        counts: RunCounts,
        error: str | None,
        end_time: datetime,
    ) -> PipelineRun:
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                raise RunLedgerError(f"Unknown run {run_id}")
            if run.is_sealed:
                raise RunLedgerError(f"Run {run_id} is already sealed")
            sealed = run.sealed(status, counts, error, end_time)
            self._runs[run_id] = sealed
        return sealed

    def recent(self, limit: int = 50) -> list[PipelineRun]:
        with self._lock:
            runs = list(self._runs.values())
        runs.sort(key=lambda r: r.start_time, reverse=True)
        return runs[:limit]

    def running(self) -> list[PipelineRun]:
        with self._lock:
            runs = [r for r in self._runs.values() if not r.is_sealed]
        return sorted(runs, key=lambda r: r.start_time)
