"""
Declarative entity definitions.

An EntityDefinition is pure metadata: where the raw records come from, how
each field is normalized, which identifiers are translated through the
crosswalk, which fields are hashed and which rules apply. The generic
conformance pipeline interprets it; no entity has bespoke pipeline code.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from golden_layer.core import parsing
from golden_layer.core.models import RawRecord
from golden_layer.core.rules import QualityRule, RuleFailure

FieldKind = Literal["TEXT", "OPTIONAL_TEXT", "CODE", "DATE", "DATETIME", "DECIMAL", "INTEGER"]

KEY_DELIMITER = "|"


class FieldSpec(BaseModel):
    """
    Normalization rule for one field.

    Attributes:
        name: Conformed field name
        source: Raw payload field, defaults to ``name``
        kind: Normalization applied to the raw string
        precision: Total digits for DECIMAL
        scale: Fractional digits for DECIMAL
    """

    name: str = Field(..., min_length=1)
    source: str | None = None
    kind: FieldKind = "TEXT"
    precision: int = Field(default=18, ge=1)
    scale: int = Field(default=2, ge=0)

    @property
    def source_field(self) -> str:
        return self.source or self.name

    def normalize(self, raw: str | None) -> Any:
        """
        Normalize a raw value. Never raises; unparseable input becomes None.

        >>> FieldSpec(name="code", kind="CODE").normalize("  equity ")
        'EQUITY'
        """
        if self.kind == "TEXT":
            return parsing.trim(raw)
        if self.kind == "OPTIONAL_TEXT":
            return parsing.blank_to_none(raw)
        if self.kind == "CODE":
            return parsing.upper_code(raw)
        if self.kind == "DATE":
            return parsing.try_parse_date(raw)
        if self.kind == "DATETIME":
            return parsing.try_parse_datetime(raw)
        if self.kind == "DECIMAL":
            return parsing.try_parse_decimal(raw, self.precision, self.scale)
        return parsing.try_parse_int(raw)


class KeyMapping(BaseModel):
    """
    Translation of a raw identifier into another identifier space.

    Attributes:
        target_field: Field receiving the translated key
        source_field: Raw payload field holding the source identifier
        from_space: Identifier space of the raw value
        to_space: Target identifier space
        required: Whether an untranslatable value excludes the record
        rule_code: Quarantine rule code for required mappings
    """

    target_field: str = Field(..., min_length=1)
    source_field: str = Field(..., min_length=1)
    from_space: str = Field(..., min_length=1)
    to_space: str = Field(..., min_length=1)
    required: bool = True
    rule_code: str | None = None

    @model_validator(mode="after")
    def check_rule_code(self) -> "KeyMapping":
        if self.required and not self.rule_code:
            raise ValueError(f"Required key mapping for '{self.target_field}' needs a rule_code")
        return self


class EntityDefinition(BaseModel):
    """
    Metadata describing how one conformed entity type is built.

    Attributes:
        entity_type: Conformed entity type
        pipeline_code: Pipeline name recorded on runs
        source_system_id: Owning source system
        stream: Raw stream to read
        record_type: Stream discriminator, None when the stream is dedicated
        source_key: Raw fields forming the source-native key (dedup and lineage)
        columns: Normalized fields in declaration order
        key_mappings: Crosswalk translations in declaration order
        enterprise_key_fields: Fields whose values form the enterprise key
        derived_fields: Fields filled after validation (e.g. match metadata)
        hash_fields: Ordered fields covered by the content hash
        rules: Ordered quality rules
    """

    entity_type: str = Field(..., min_length=1)
    pipeline_code: str = Field(..., min_length=1)
    source_system_id: int
    stream: str = Field(..., min_length=1)
    record_type: str | None = None
    source_key: list[str] = Field(..., min_length=1)
    columns: list[FieldSpec] = Field(default_factory=list)
    key_mappings: list[KeyMapping] = Field(default_factory=list)
    enterprise_key_fields: list[str] = Field(..., min_length=1)
    derived_fields: list[str] = Field(default_factory=list)
    hash_fields: list[str] = Field(..., min_length=1)
    rules: list[QualityRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_field_references(self) -> "EntityDefinition":
        known = (
            {f.name for f in self.columns}
            | {m.target_field for m in self.key_mappings}
            | set(self.derived_fields)
        )
        for name in self.enterprise_key_fields + self.hash_fields:
            if name not in known:
                raise ValueError(f"{self.entity_type}: unknown field '{name}'")

        # A business field left out of the hash would never trigger an update
        unhashed = sorted(known - set(self.enterprise_key_fields) - set(self.hash_fields))
        if unhashed:
            raise ValueError(f"{self.entity_type}: fields missing from hash_fields: {', '.join(unhashed)}")
        return self

    def source_key_values(self, record: RawRecord) -> tuple[str | None, ...]:
        """Trimmed raw values of the source-native key."""
        return tuple(parsing.blank_to_none(record.get(f)) for f in self.source_key)

    def source_native_id(self, record: RawRecord) -> str | None:
        """
        Source-native identifier kept for lineage.

        Composite keys are joined with "|"; None when every part is missing.
        """
        parts = self.source_key_values(record)
        if all(p is None for p in parts):
            return None
        return KEY_DELIMITER.join(p or "" for p in parts)


def render_key_part(value: Any) -> str:
    """Render one enterprise-key component."""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


class StagedRow(BaseModel):
    """
    Working state of one raw record while it moves through the stages.

    Lives only for the duration of one pipeline invocation.
    """

    raw: RawRecord
    source_native_id: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    enterprise_key: str | None = None
    row_hash: str | None = None
    failures: list[RuleFailure] = Field(default_factory=list)

    @property
    def rejected(self) -> bool:
        return bool(self.failures)

    def fail(self, rule_code: str, field_name: str, detail: str) -> None:
        """Record a failure; one entry per rule code."""
        if any(f.rule_code == rule_code for f in self.failures):
            return
        self.failures.append(RuleFailure(rule_code=rule_code, field_name=field_name, detail=detail))
