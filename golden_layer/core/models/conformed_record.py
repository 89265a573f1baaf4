"""
ConformedRecord model representing a validated, enterprise-keyed record.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from golden_layer.core.clock import utc_now

UpsertMode = Literal["MERGE", "REBUILD"]


class ConformedRecord(BaseModel):
    """
    A typed, validated record keyed by its enterprise key.

    Attributes:
        entity_type: Conformed entity type (e.g. "investment_team")
        enterprise_key: Canonical, source-agnostic identifier
        attributes: Typed business attributes (plus resolved foreign keys)
        source_native_id: Source-native identifier kept for lineage
        source_system_id: Owning source system
        raw_record_id: Back-reference to the originating raw record
        source_modified_at: Source-side modification time (raw ingestion time)
        row_hash: Content hash over the business attributes
        conformed_at: When the record was last written
        conformed_by: Actor that wrote the record
    """

    entity_type: str = Field(..., min_length=1)
    enterprise_key: str = Field(..., min_length=1)
    attributes: dict[str, Any]
    source_native_id: str | None = None
    source_system_id: int
    raw_record_id: str
    source_modified_at: datetime
    row_hash: str = Field(..., min_length=64, max_length=64)
    conformed_at: datetime = Field(default_factory=utc_now)
    conformed_by: str = "golden_layer"

    class Config:
        json_schema_extra = {
            "example": {
                "entity_type": "investment_team",
                "enterprise_key": "IT-10001",
                "attributes": {
                    "investment_team_name": "Global Infrastructure",
                    "investment_team_short_name": "GI",
                    "start_date": "2015-03-01",
                    "stop_date": None
                },
                "source_native_id": "ENT-IT-10001",
                "source_system_id": 1,
                "raw_record_id": "ent-2025-01-15-000001",
                "source_modified_at": "2025-01-15T06:00:00Z",
                "row_hash": "0" * 64,
                "conformed_by": "golden_layer"
            }
        }


class UpsertResult(BaseModel):
    """
    Outcome counts of one atomic upsert batch.

    Inserted, updated and unchanged rows are counted separately so that a
    run never reports a change that did not happen.
    """

    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    deleted: int = 0

    @property
    def written(self) -> int:
        return self.inserted + self.updated
