"""
QuarantineRecord model representing a rejected record awaiting remediation.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from golden_layer.core.clock import utc_now

ResolutionStatus = Literal["PENDING", "RESOLVED", "REJECTED", "REPROCESSED"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"RESOLVED", "REJECTED", "REPROCESSED"})


class QuarantineRecord(BaseModel):
    """
    One failed quality rule for one raw record.

    A record that fails two rules produces two quarantine rows. Rows are
    append-only: the only permitted mutation is a single transition out of
    PENDING.

    Attributes:
        quarantine_id: Store-assigned identifier
        target_entity: Conformed entity type the record was headed for
        raw_payload: Source payload as landed
        raw_record_id: Originating raw record
        source_native_id: Source-native key of the record (may be missing if malformed)
        batch_id: Ingestion batch of the raw record
        run_id: Pipeline run that quarantined the record
        failed_rule: Rule code that failed (e.g. "PG_TEAM_EXISTS")
        failure_detail: Human-readable explanation
        quarantined_at: When quarantined
        quarantined_by: Actor that quarantined it
        resolution_status: PENDING, RESOLVED, REJECTED or REPROCESSED
        resolved_at: When the remediation workflow closed the row
        resolved_by: Who closed the row
        resolution_notes: Free-text remediation notes
    """

    quarantine_id: int | None = None
    target_entity: str = Field(..., min_length=1)
    raw_payload: dict[str, Any]
    raw_record_id: str | None = None
    source_native_id: str | None = None
    batch_id: str | None = None
    run_id: str | None = None
    failed_rule: str = Field(..., min_length=1)
    failure_detail: str
    quarantined_at: datetime = Field(default_factory=utc_now)
    quarantined_by: str = "golden_layer"
    resolution_status: ResolutionStatus = "PENDING"
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution_notes: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.resolution_status == "PENDING"

    class Config:
        json_schema_extra = {
            "example": {
                "quarantine_id": 1,
                "target_entity": "portfolio_group",
                "raw_payload": {
                    "portfolio_group_id": "ENT-PG-20001",
                    "pg_name": "Infrastructure Fund IV",
                    "pg_team_ref": "ENT-IT-99999"
                },
                "raw_record_id": "ent-2025-01-15-000042",
                "source_native_id": "ENT-PG-20001",
                "failed_rule": "PG_TEAM_EXISTS",
                "failure_detail": "investment_team_enterprise_key 'IT-99999' not found in investment_team",
                "resolution_status": "PENDING"
            }
        }


class QuarantineSummary(BaseModel):
    """Quarantine counts grouped by entity, rule and resolution status."""

    target_entity: str
    failed_rule: str
    resolution_status: ResolutionStatus
    row_count: int
    earliest: datetime
    latest: datetime
