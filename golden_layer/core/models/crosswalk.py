"""
Crosswalk models: identifier spaces, translation rules and multi-hop paths.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from golden_layer.core.keys import translate_key

MappingType = Literal["1:1", "1:N", "N:1", "CONDITIONAL"]
KeyType = Literal["PRIMARY", "FOREIGN", "NATURAL"]


class KeySpace(BaseModel):
    """
    An identifier space registered for one source system.

    Attributes:
        key_id: Registry identifier
        name: Unique space name (e.g. "ent_investment_team_id")
        source_system_id: Owning source system
        key_type: PRIMARY, FOREIGN or NATURAL
        example_values: Sample identifiers, documentation only
        description: Free-text description
    """

    key_id: int
    name: str = Field(..., min_length=1)
    source_system_id: int
    key_type: KeyType
    example_values: list[str] = Field(default_factory=list)
    description: str | None = None


class PrefixTransformation(BaseModel):
    """Declarative prefix swap applied when a rule translates a value."""

    strip_prefix: str = Field(..., min_length=1)
    add_prefix: str

    def apply(self, value: str | None) -> str | None:
        return translate_key(value, self.strip_prefix, self.add_prefix)


class CrosswalkRule(BaseModel):
    """
    Directed edge between two identifier spaces.

    Attributes:
        crosswalk_id: Rule identifier, unique within a graph
        from_space: Source identifier space name
        to_space: Target identifier space name
        mapping_type: 1:1, 1:N, N:1 or CONDITIONAL
        confidence: Confidence label (e.g. "EXACT")
        transformation: Prefix swap, None for lookup-only edges
        conditions: Distinguishes several rules between the same pair
        bidirectional: Whether the mapping is declared reversible
        validated_by: Who validated the mapping
        validation_date: When it was validated
        is_active: Inactive rules are ignored by lookups and traversal
    """

    crosswalk_id: int
    from_space: str = Field(..., min_length=1)
    to_space: str = Field(..., min_length=1)
    mapping_type: MappingType = "1:1"
    confidence: str = "EXACT"
    transformation: PrefixTransformation | None = None
    conditions: str | None = None
    bidirectional: bool = False
    validated_by: str | None = None
    validation_date: date | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_not_self_loop(self) -> "CrosswalkRule":
        if self.from_space == self.to_space:
            raise ValueError(f"Crosswalk rule {self.crosswalk_id} maps '{self.from_space}' onto itself")
        return self

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_space, self.to_space)

    def apply(self, value: str | None) -> str | None:
        """Translate a value through this rule, None for lookup-only edges."""
        if self.transformation is None:
            return None
        return self.transformation.apply(value)

    class Config:
        json_schema_extra = {
            "example": {
                "crosswalk_id": 1,
                "from_space": "ent_investment_team_id",
                "to_space": "investment_team_enterprise_key",
                "mapping_type": "1:1",
                "confidence": "EXACT",
                "transformation": {"strip_prefix": "ENT-IT-", "add_prefix": "IT-"},
                "bidirectional": True,
                "validated_by": "M. Thompson",
                "validation_date": "2025-01-15"
            }
        }


class CrosswalkPath(BaseModel):
    """
    Ordered sequence of crosswalk rules connecting two identifier spaces.

    Attributes:
        from_space: Start of the path
        to_space: End of the path
        crosswalk_ids: Rule identifiers in traversal order
        hop_count: Number of rules on the path
        reliability: Reliability label (e.g. "HIGH", "DISCOVERED")
        description: Free-text description
    """

    from_space: str
    to_space: str
    crosswalk_ids: list[int] = Field(..., min_length=1)
    hop_count: int = Field(..., ge=1)
    reliability: str = "DISCOVERED"
    description: str | None = None

    @field_validator("hop_count")
    @classmethod
    def check_hop_count(cls, v, info):
        """hop_count must agree with the number of rules on the path."""
        ids = info.data.get("crosswalk_ids") or []
        if ids and v != len(ids):
            raise ValueError(f"hop_count ({v}) must equal the number of crosswalk_ids ({len(ids)})")
        return v
