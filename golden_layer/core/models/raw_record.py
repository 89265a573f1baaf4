"""
RawRecord model representing a landed, untyped source record.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


class RawRecord(BaseModel):
    """
    A source-native record exactly as it was landed.

    All payload values are strings (or null); typing happens during
    conformance. Records are immutable once landed.

    Attributes:
        record_id: Unique identifier assigned at ingestion
        stream: Raw stream the record landed in (e.g. "src_enterprise_raw")
        record_type: Discriminator when one stream multiplexes several entity kinds
        batch_id: Ingestion batch identifier
        ingested_at: When the record landed (naive values are read as UTC)
        source_file: Originating file or source reference
        payload: Source-native field values
    """

    record_id: str = Field(..., min_length=1)
    stream: str = Field(..., min_length=1)
    record_type: str | None = None
    batch_id: str = Field(..., min_length=1)
    ingested_at: datetime
    source_file: str | None = None
    payload: dict[str, str | None]

    @field_validator("ingested_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    def get(self, field_name: str) -> str | None:
        """Return a payload value, None when the field is absent."""
        return self.payload.get(field_name)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "record_id": "ent-2025-01-15-000001",
                "stream": "src_enterprise_raw",
                "record_type": "investment_team",
                "batch_id": "BATCH-2025-01-15",
                "ingested_at": "2025-01-15T06:00:00Z",
                "source_file": "enterprise/investment_teams_20250115.json",
                "payload": {
                    "investment_team_id": "ENT-IT-10001",
                    "team_name": "Global Infrastructure",
                    "team_short_name": "GI",
                    "start_date": "2015-03-01",
                    "stop_date": None
                }
            }
        }
