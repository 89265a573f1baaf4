"""
Generic entity conformance pipeline.

Flow: stage → normalize → translate keys → hash → validate/quarantine →
(assemble) → upsert with change detection

Each stage finishes for the whole batch before the next begins. Every
invocation opens exactly one run in the ledger and seals it, whether the
stages succeed or not.
"""

from golden_layer.core import parsing
from golden_layer.core.crosswalk import CrosswalkGraph
from golden_layer.core.hashing import compute_row_hash
from golden_layer.core.models import (
    ConformedRecord,
    PipelineRun,
    RawRecord,
    RunCounts,
    UpsertMode,
    UpsertResult,
)
from golden_layer.core.rules import RuleCatalog, RuleEngine
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger
from golden_layer.orchestration.cancellation import CancellationToken
from golden_layer.warehouse.stores import ConformedStore, RawRecordSource

from .entity import KEY_DELIMITER, EntityDefinition, StagedRow, render_key_part
from .quarantine import QuarantineSink
from .run_ledger import RunLedger

logger = get_logger(__name__)

NOT_NULL_EK = "NOT_NULL_EK"


class EntityConformancePipeline:
    """
    Conforms one entity type from its raw stream into the conformed store.

    All entity-specific behaviour comes from the EntityDefinition; subclasses
    only override ``_assemble`` to enrich validated rows before the upsert.
    """

    def __init__(
        self,
        definition: EntityDefinition,
        raw_source: RawRecordSource,
        conformed_store: ConformedStore,
        quarantine_sink: QuarantineSink,
        run_ledger: RunLedger,
        graph: CrosswalkGraph,
        catalog: RuleCatalog | None = None,
        conformed_by: str = "golden_layer",
    ):
        """
        Initialize the pipeline.

        Args:
            definition: Entity metadata
            raw_source: Landed raw records
            conformed_store: Conformed records (read for references, written by upsert)
            quarantine_sink: Destination of excluded records
            run_ledger: Run ledger
            graph: Crosswalk graph used for key translation
            catalog: Governance catalog for rule activity and severity
            conformed_by: Actor recorded on conformed rows
        """
        self.definition = definition
        self.raw_source = raw_source
        self.conformed_store = conformed_store
        self.quarantine_sink = quarantine_sink
        self.run_ledger = run_ledger
        self.graph = graph
        self.conformed_by = conformed_by
        self.rule_engine = RuleEngine(definition.entity_type, definition.rules, catalog)

    @property
    def entity_type(self) -> str:
        return self.definition.entity_type

    def run(
        self,
        batch_id: str | None = None,
        cancel_token: CancellationToken | None = None,
        operation: UpsertMode = "MERGE",
    ) -> PipelineRun:
        """
        Run every stage once and seal the run.

        Args:
            batch_id: Restrict staging to one raw batch, None for all batches
            cancel_token: Checked before every stage
            operation: MERGE, or REBUILD to replace the entity's rows

        Returns:
            The sealed SUCCEEDED run

        Raises:
            OperationCancelled: If the token fires (the run is sealed FAILED)
            InvariantViolation: If an enterprise key would be re-bound
            StoreUnavailableError: If a store fails
        """
        run_id = self.run_ledger.start(
            self.definition.pipeline_code,
            self.entity_type,
            operation=operation,
            batch_id=batch_id,
        )
        counts = RunCounts()

        try:
            self._checkpoint(cancel_token, "stage")
            records = self.stage(batch_id)
            counts.read = len(records)

            self._checkpoint(cancel_token, "normalize")
            rows = self.normalize(records)

            self._checkpoint(cancel_token, "translate")
            self.translate(rows)

            self._checkpoint(cancel_token, "hash")
            self.hash(rows)

            self._checkpoint(cancel_token, "validate")
            accepted, counts.quarantined = self.validate(rows, run_id)

            self._checkpoint(cancel_token, "assemble")
            accepted = self._assemble(accepted)

            self._checkpoint(cancel_token, "upsert")
            result = self.upsert(accepted, operation)
        except Exception as e:
            logger.error(
                f"{self.entity_type} conformance failed: {e}",
                extra={"run_id": run_id, "entity": self.entity_type},
            )
            self.run_ledger.complete(run_id, "FAILED", counts, error=str(e) or type(e).__name__)
            raise

        counts.inserted = result.inserted
        counts.updated = result.updated
        counts.unchanged = result.unchanged
        counts.deleted = result.deleted
        return self.run_ledger.complete(run_id, "SUCCEEDED", counts)

    # =======================
    # STAGES
    # =======================

    def stage(self, batch_id: str | None = None) -> list[RawRecord]:
        """
        Fetch raw records and keep the latest per source-native key.

        The most recently ingested record wins; ties keep the earlier landed
        one. Records whose key is entirely missing are all kept so each of
        them is quarantined instead of being collapsed.
        """
        records = self.raw_source.fetch(
            self.definition.stream,
            record_type=self.definition.record_type,
            batch_id=batch_id,
        )

        winners: set[str] = set()
        seen_keys: set[tuple] = set()
        # sorted() is stable, so equal timestamps keep landing order
        for record in sorted(records, key=lambda r: r.ingested_at, reverse=True):
            key = self.definition.source_key_values(record)
            if all(part is None for part in key):
                winners.add(record.record_id)
                continue
            if key in seen_keys:
                continue
            seen_keys.add(key)
            winners.add(record.record_id)

        staged = [r for r in records if r.record_id in winners]
        logger.debug(
            f"Staged {len(staged)} of {len(records)} {self.entity_type} raw records",
            extra={"entity": self.entity_type, "batch_id": batch_id},
        )
        return staged

    def normalize(self, records: list[RawRecord]) -> list[StagedRow]:
        """Apply each field's normalization. Unparseable values become None."""
        rows = []
        for record in records:
            values = {f.name: f.normalize(record.get(f.source_field)) for f in self.definition.columns}
            rows.append(StagedRow(
                raw=record,
                source_native_id=self.definition.source_native_id(record),
                values=values,
            ))
        return rows

    def translate(self, rows: list[StagedRow]) -> None:
        """
        Resolve identifiers through the crosswalk and derive the enterprise key.

        A required mapping that yields None fails with the mapping's rule
        code; a missing enterprise key component fails with NOT_NULL_EK.
        """
        for row in rows:
            for mapping in self.definition.key_mappings:
                raw_value = parsing.blank_to_none(row.raw.get(mapping.source_field))
                translated = self.graph.translate(raw_value, mapping.from_space, mapping.to_space)
                row.values[mapping.target_field] = translated
                if translated is not None:
                    continue
                if mapping.required:
                    if raw_value is None:
                        detail = f"{mapping.source_field} is NULL"
                    else:
                        detail = (
                            f"{mapping.source_field} '{raw_value}' cannot be translated "
                            f"from {mapping.from_space} to {mapping.to_space}"
                        )
                    row.fail(mapping.rule_code, mapping.target_field, detail)
                elif raw_value is not None:
                    logger.debug(
                        f"Optional {mapping.source_field} '{raw_value}' left unresolved",
                        extra={"entity": self.entity_type, "record_id": row.raw.record_id},
                    )

            row.enterprise_key = self._enterprise_key(row)

    def hash(self, rows: list[StagedRow]) -> None:
        for row in rows:
            row.row_hash = self._row_hash(row)

    def validate(self, rows: list[StagedRow], run_id: str) -> tuple[list[StagedRow], int]:
        """
        Evaluate the rule set and quarantine every failure.

        Returns:
            Accepted rows and the number of distinct records quarantined
        """
        cache: dict[tuple[str, str], bool] = {}

        def exists(entity_type: str, enterprise_key: str) -> bool:
            key = (entity_type, enterprise_key)
            if key not in cache:
                cache[key] = self.conformed_store.exists(entity_type, enterprise_key)
            return cache[key]

        accepted: list[StagedRow] = []
        rejections = []
        for row in rows:
            evaluation = self.rule_engine.evaluate(row.values, exists)
            for failure in evaluation.failures:
                row.fail(failure.rule_code, failure.field_name, failure.detail)
            for warning in evaluation.warnings:
                metrics.record_rule_warning(self.entity_type, warning.rule_code)
                logger.warning(
                    f"{self.entity_type} {row.source_native_id}: {warning.rule_code} {warning.detail}",
                    extra={"entity": self.entity_type, "rule": warning.rule_code, "run_id": run_id},
                )

            if not row.rejected:
                accepted.append(row)
                continue
            for failure in row.failures:
                rejections.append(self.quarantine_sink.build(
                    self.entity_type,
                    row.raw.payload,
                    failure.rule_code,
                    failure.detail,
                    raw_record_id=row.raw.record_id,
                    source_native_id=row.source_native_id,
                    batch_id=row.raw.batch_id,
                    run_id=run_id,
                ))

        self.quarantine_sink.reject_many(rejections)
        quarantined = len(rows) - len(accepted)
        logger.info(
            f"Validated {len(rows)} {self.entity_type} records: {len(accepted)} accepted, {quarantined} quarantined",
            extra={"entity": self.entity_type, "run_id": run_id},
        )
        return accepted, quarantined

    def _assemble(self, rows: list[StagedRow]) -> list[StagedRow]:
        """Hook for composite entities; plain entities pass rows through."""
        return rows

    def upsert(self, rows: list[StagedRow], operation: UpsertMode = "MERGE") -> UpsertResult:
        records = [self._to_conformed(row) for row in rows]
        return self.conformed_store.apply_batch(self.entity_type, records, mode=operation)

    # =======================
    # HELPERS
    # =======================

    def _checkpoint(self, cancel_token: CancellationToken | None, stage: str) -> None:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"{self.entity_type} {stage}")

    def _enterprise_key(self, row: StagedRow) -> str | None:
        parts = []
        for field_name in self.definition.enterprise_key_fields:
            value = row.values.get(field_name)
            if value is None:
                row.fail(NOT_NULL_EK, field_name, f"enterprise key component {field_name} is NULL")
                return None
            parts.append(render_key_part(value))
        return KEY_DELIMITER.join(parts)

    def _row_hash(self, row: StagedRow) -> str:
        return compute_row_hash(row.values.get(f) for f in self.definition.hash_fields)

    def _to_conformed(self, row: StagedRow) -> ConformedRecord:
        return ConformedRecord(
            entity_type=self.entity_type,
            enterprise_key=row.enterprise_key,
            attributes=dict(row.values),
            source_native_id=row.source_native_id,
            source_system_id=self.definition.source_system_id,
            raw_record_id=row.raw.record_id,
            source_modified_at=row.raw.ingested_at,
            row_hash=row.row_hash,
            conformed_by=self.conformed_by,
        )
