"""
PipelineRun model representing one conformance invocation in the run ledger.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from golden_layer.core.clock import utc_now

RunStatus = Literal["RUNNING", "SUCCEEDED", "FAILED"]
RunOperation = Literal["MERGE", "REBUILD"]
TargetLayer = Literal["BRONZE", "SILVER", "GOLD"]


class RunCounts(BaseModel):
    """Row-level outcome counters of a pipeline run."""

    read: int = Field(default=0, ge=0)
    inserted: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    unchanged: int = Field(default=0, ge=0)
    deleted: int = Field(default=0, ge=0)
    quarantined: int = Field(default=0, ge=0)


class PipelineRun(BaseModel):
    """
    One execution record per pipeline or assembler invocation.

    Created RUNNING at start and sealed exactly once as SUCCEEDED or FAILED.
    A run that is never sealed stays RUNNING; start_time is always recorded
    so a housekeeping job can find stale runs.

    Attributes:
        run_id: UUID of the run
        pipeline_code: Logical pipeline name (e.g. "PL_ENTERPRISE_DAILY")
        target_layer: Layer written by the run
        target_entity: Conformed entity type written
        operation: MERGE or REBUILD
        batch_id: Raw batch scope, None for all batches
        status: RUNNING, SUCCEEDED or FAILED
        start_time: When the run started
        end_time: When the run was sealed
        rows_read: Staged records after raw de-duplication
        rows_inserted: New enterprise keys written
        rows_updated: Existing keys whose content hash changed
        rows_unchanged: Existing keys with identical content hash
        rows_deleted: Rows removed by a REBUILD
        rows_quarantined: Distinct records excluded by quality rules
        error_message: Failure detail for FAILED runs
        executed_by: Actor that executed the run
    """

    run_id: str
    pipeline_code: str = Field(..., min_length=1)
    target_layer: TargetLayer = "SILVER"
    target_entity: str = Field(..., min_length=1)
    operation: RunOperation = "MERGE"
    batch_id: str | None = None
    status: RunStatus = "RUNNING"
    start_time: datetime = Field(default_factory=utc_now)
    end_time: datetime | None = None
    rows_read: int = 0
    rows_inserted: int = 0
    rows_updated: int = 0
    rows_unchanged: int = 0
    rows_deleted: int = 0
    rows_quarantined: int = 0
    error_message: str | None = None
    executed_by: str = "golden_layer"

    @property
    def is_sealed(self) -> bool:
        return self.status != "RUNNING"

    @property
    def duration_seconds(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def counts(self) -> RunCounts:
        return RunCounts(
            read=self.rows_read,
            inserted=self.rows_inserted,
            updated=self.rows_updated,
            unchanged=self.rows_unchanged,
            deleted=self.rows_deleted,
            quarantined=self.rows_quarantined,
        )

    def sealed(self, status: RunStatus, counts: RunCounts, error: str | None, end_time: datetime) -> "PipelineRun":
        """Return a sealed copy of this run."""
        return self.model_copy(update={
            "status": status,
            "end_time": end_time,
            "rows_read": counts.read,
            "rows_inserted": counts.inserted,
            "rows_updated": counts.updated,
            "rows_unchanged": counts.unchanged,
            "rows_deleted": counts.deleted,
            "rows_quarantined": counts.quarantined,
            "error_message": error,
        })

    class Config:
        json_schema_extra = {
            "example": {
                "run_id": "6f1c1f8e-3a3b-4c1e-9d55-3f0a4d3b8d11",
                "pipeline_code": "PL_ENTERPRISE_DAILY",
                "target_layer": "SILVER",
                "target_entity": "investment_team",
                "operation": "MERGE",
                "status": "SUCCEEDED",
                "rows_read": 3,
                "rows_inserted": 2,
                "rows_updated": 0,
                "rows_unchanged": 0,
                "rows_deleted": 0,
                "rows_quarantined": 1
            }
        }
