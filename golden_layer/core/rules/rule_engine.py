"""
Rule engine evaluating an ordered list of quality rules against staged records.
"""

from typing import Any

from pydantic import BaseModel

from .quality_rule import QualityRule, ReferenceCheck
from .rule_config import RuleCatalog, RuleSeverity


class RuleFailure(BaseModel):
    """A single rule that did not hold for one record."""

    rule_code: str
    field_name: str
    detail: str
    severity: RuleSeverity = "EXPECT_OR_FAIL"


class RuleEvaluation(BaseModel):
    """All outcomes of evaluating one record."""

    failures: list[RuleFailure] = []
    warnings: list[RuleFailure] = []
    passed_rules: list[str] = []

    @property
    def passed(self) -> bool:
        return not self.failures


class RuleEngine:
    """
    Applies quality rules to records in declaration order.

    Every rule is evaluated even after an earlier one failed, so each
    failure can be quarantined independently. Rules deactivated in the
    catalog are skipped; EXPECT_OR_WARN rules are reported as warnings and
    never exclude a record.
    """

    def __init__(self, target_entity: str, rules: list[QualityRule], catalog: RuleCatalog | None = None):
        """
        Initialize the rule engine.

        Args:
            target_entity: Entity type the rules belong to
            rules: Ordered rules declared for the entity
            catalog: Governance catalog (activity, severity, extra rules)
        """
        self.target_entity = target_entity
        self.catalog = catalog or RuleCatalog()
        self.rules: list[QualityRule] = []
        for rule in list(rules) + self.catalog.extra_rules_for(target_entity):
            if self.catalog.is_active(rule.rule_code, target_entity):
                self.rules.append(rule)

    def severity_of(self, rule_code: str) -> RuleSeverity:
        return self.catalog.severity_of(rule_code, self.target_entity)

    def evaluate(self, values: dict[str, Any], exists: ReferenceCheck) -> RuleEvaluation:
        """
        Evaluate every active rule against one record.

        Args:
            values: Normalized and translated field values
            exists: Reference existence callback

        Returns:
            RuleEvaluation with failures, warnings and passed rule codes
        """
        evaluation = RuleEvaluation()
        for rule in self.rules:
            detail = rule.check(values, exists)
            if detail is None:
                evaluation.passed_rules.append(rule.rule_code)
                continue

            failure = RuleFailure(
                rule_code=rule.rule_code,
                field_name=rule.field_name,
                detail=detail,
                severity=self.severity_of(rule.rule_code),
            )
            if failure.severity == "EXPECT_OR_FAIL":
                evaluation.failures.append(failure)
            else:
                evaluation.warnings.append(failure)
        return evaluation

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts by kind and the ordered rule codes
        """
        by_kind: dict[str, int] = {}
        for rule in self.rules:
            kind = getattr(rule, "kind", type(rule).__name__)
            by_kind[kind] = by_kind.get(kind, 0) + 1
        return {
            "target_entity": self.target_entity,
            "total_rules": len(self.rules),
            "rules_by_kind": by_kind,
            "rule_codes": [r.rule_code for r in self.rules],
        }
