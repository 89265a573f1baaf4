"""
Quality rules as tagged variants.

Each rule kind is a pydantic model with a literal ``kind`` tag and typed
parameters, so rule sets can be declared in code or loaded from YAML and are
validated the same way. A rule inspects the normalized values of one staged
record and returns a failure detail string, or None when it holds.
"""

from decimal import Decimal
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

# (entity_type, enterprise_key) -> bool
ReferenceCheck = Callable[[str, str], bool]


class QualityRule(BaseModel):
    """
    Base class for all rule kinds.

    Attributes:
        rule_code: Stable identifier recorded on quarantine rows
        field_name: Normalized field the rule inspects
        description: Optional human-readable description
    """

    rule_code: str = Field(..., min_length=1)
    field_name: str = Field(..., min_length=1)
    description: str | None = None

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        """
        Evaluate the rule.

        Args:
            values: Normalized field values of one record
            exists: Callback answering whether a conformed key exists

        Returns:
            Failure detail, or None when the rule holds
        """
        raise NotImplementedError

    class Config:
        frozen = True


class NotNullRule(QualityRule):
    """Fails when the value is null (missing, blank or unparseable)."""

    kind: Literal["not_null"] = "not_null"

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        if values.get(self.field_name) is None:
            return f"{self.field_name} is NULL or could not be parsed"
        return None


class NotEmptyRule(QualityRule):
    """Fails when the value is null or a whitespace-only string."""

    kind: Literal["not_empty"] = "not_empty"

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        value = values.get(self.field_name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return f"{self.field_name} is NULL or empty"
        return None


class ReferenceExistsRule(QualityRule):
    """
    Fails when a resolved foreign key is not conformed in the target entity.

    Null keys are skipped; an unresolved required key is reported by the
    key translation stage under its own rule code.
    """

    kind: Literal["reference_exists"] = "reference_exists"
    target_entity: str = Field(..., min_length=1)

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        value = values.get(self.field_name)
        if value is None:
            return None
        if not exists(self.target_entity, str(value)):
            return f"{self.field_name} '{value}' not found in {self.target_entity}"
        return None


class RangeRule(QualityRule):
    """Fails when the value is null or falls outside the configured bounds."""

    kind: Literal["range"] = "range"
    min_value: Decimal | None = None
    max_value: Decimal | None = None
    min_inclusive: bool = True
    max_inclusive: bool = True

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        value = values.get(self.field_name)
        if value is None:
            return f"{self.field_name} is NULL; expected {self._bounds()}"
        number = Decimal(str(value))
        if self.min_value is not None:
            if number < self.min_value or (number == self.min_value and not self.min_inclusive):
                return f"{self.field_name} {value} not in {self._bounds()}"
        if self.max_value is not None:
            if number > self.max_value or (number == self.max_value and not self.max_inclusive):
                return f"{self.field_name} {value} not in {self._bounds()}"
        return None

    def _bounds(self) -> str:
        low = "(" if not self.min_inclusive else "["
        high = ")" if not self.max_inclusive else "]"
        lower = self.min_value if self.min_value is not None else "-inf"
        upper = self.max_value if self.max_value is not None else "inf"
        return f"{low}{lower}, {upper}{high}"


class AllowedValuesRule(QualityRule):
    """Fails when the value is null or not one of the allowed codes."""

    kind: Literal["allowed_values"] = "allowed_values"
    allowed: list[str] = Field(..., min_length=1)

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        value = values.get(self.field_name)
        if value is None or value not in self.allowed:
            return f"{self.field_name} '{value}' not in valid list"
        return None


class AnyPresentRule(QualityRule):
    """Fails when every field of the group is null."""

    kind: Literal["any_present"] = "any_present"
    fields: list[str] = Field(..., min_length=1)

    def check(self, values: dict[str, Any], exists: ReferenceCheck) -> str | None:
        if all(values.get(f) is None for f in self.fields):
            return f"All of {', '.join(self.fields)} are NULL"
        return None


QualityRuleSpec = Annotated[
    Union[
        NotNullRule,
        NotEmptyRule,
        ReferenceExistsRule,
        RangeRule,
        AllowedValuesRule,
        AnyPresentRule,
    ],
    Field(discriminator="kind"),
]

_RULE_LIST_ADAPTER = TypeAdapter(list[QualityRuleSpec])


def parse_rules(data: list[dict[str, Any]]) -> list[QualityRule]:
    """
    Build typed rules from plain dictionaries (e.g. parsed YAML).

    Args:
        data: Rule dictionaries, each carrying a ``kind`` tag

    Returns:
        Typed rule instances in input order

    Raises:
        pydantic.ValidationError: If a kind is unknown or parameters are invalid
    """
    return list(_RULE_LIST_ADAPTER.validate_python(data))
