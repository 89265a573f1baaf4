"""
Quarantine sink: the single path by which a record leaves a pipeline
without being conformed.
"""

from typing import Any

from golden_layer.core.clock import utc_now
from golden_layer.core.exceptions import QuarantineError
from golden_layer.core.models import QuarantineRecord, QuarantineSummary, ResolutionStatus
from golden_layer.core.models.quarantine_record import TERMINAL_STATUSES
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger
from golden_layer.warehouse.stores import QuarantineStore

logger = get_logger(__name__)


class QuarantineSink:
    """
    Append-only writer over a quarantine store.

    Writes are never swallowed: if the store is unavailable the error
    propagates and the calling pipeline run fails.
    """

    def __init__(self, store: QuarantineStore, quarantined_by: str = "golden_layer"):
        """
        Initialize the sink.

        Args:
            store: Backing quarantine store
            quarantined_by: Actor recorded on every row
        """
        self.store = store
        self.quarantined_by = quarantined_by

    def build(
        self,
        entity_type: str,
        raw_payload: dict[str, Any],
        rule_id: str,
        detail: str,
        raw_record_id: str | None = None,
        source_native_id: str | None = None,
        batch_id: str | None = None,
        run_id: str | None = None,
    ) -> QuarantineRecord:
        """Build an unsaved quarantine row."""
        return QuarantineRecord(
            target_entity=entity_type,
            raw_payload=dict(raw_payload),
            raw_record_id=raw_record_id,
            source_native_id=source_native_id,
            batch_id=batch_id,
            run_id=run_id,
            failed_rule=rule_id,
            failure_detail=detail,
            quarantined_at=utc_now(),
            quarantined_by=self.quarantined_by,
        )

    def reject(
        self,
        entity_type: str,
        raw_payload: dict[str, Any],
        rule_id: str,
        detail: str,
        raw_record_id: str | None = None,
        source_native_id: str | None = None,
        batch_id: str | None = None,
        run_id: str | None = None,
    ) -> QuarantineRecord:
        """
        Quarantine one record for one failed rule.

        Returns:
            The stored row with its quarantine id

        Raises:
            StoreUnavailableError: If the store cannot be written
        """
        record = self.build(
            entity_type, raw_payload, rule_id, detail,
            raw_record_id=raw_record_id,
            source_native_id=source_native_id,
            batch_id=batch_id,
            run_id=run_id,
        )
        return self.reject_many([record])[0]

    def reject_many(self, records: list[QuarantineRecord]) -> list[QuarantineRecord]:
        """
        Quarantine a batch of rows in one store write.

        Args:
            records: Rows built with ``build``

        Returns:
            Stored rows in input order
        """
        if not records:
            return []
        stored = self.store.append(records)

        by_rule: dict[tuple[str, str], int] = {}
        for record in stored:
            key = (record.target_entity, record.failed_rule)
            by_rule[key] = by_rule.get(key, 0) + 1
        for (entity, rule), count in by_rule.items():
            metrics.record_quarantine(entity, rule, count)
            logger.info(
                f"Quarantined {count} {entity} record(s) for {rule}",
                extra={"entity": entity, "rule": rule, "count": count},
            )
        return stored

    def pending(self, target_entity: str | None = None) -> list[QuarantineRecord]:
        return self.store.find(target_entity=target_entity, status="PENDING")

    def for_run(self, run_id: str) -> list[QuarantineRecord]:
        return self.store.find(run_id=run_id)

    def summary(self) -> list[QuarantineSummary]:
        """Counts by entity, rule and resolution status with first/last seen."""
        summary = self.store.summary()
        metrics.record_pending_quarantine(summary)
        return summary

    def resolve(
        self,
        quarantine_id: int,
        status: ResolutionStatus,
        resolved_by: str,
        notes: str | None = None,
    ) -> QuarantineRecord:
        """
        Close a pending row.

        Args:
            quarantine_id: Row to close
            status: RESOLVED, REJECTED or REPROCESSED
            resolved_by: Who closed it
            notes: Free-text remediation notes

        Raises:
            QuarantineError: If the status is not terminal, or the row is
                missing or already closed
        """
        if status not in TERMINAL_STATUSES:
            raise QuarantineError(f"{status} is not a terminal resolution status")
        record = self.store.update_resolution(quarantine_id, status, resolved_by, utc_now(), notes)
        logger.info(
            f"Quarantine row {quarantine_id} -> {status}",
            extra={"quarantine_id": quarantine_id, "status": status, "resolved_by": resolved_by},
        )
        return record
