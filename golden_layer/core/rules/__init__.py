"""
Quality rules, rule catalog and rule engine.
"""

from .quality_rule import (
    AllowedValuesRule,
    AnyPresentRule,
    NotEmptyRule,
    NotNullRule,
    QualityRule,
    RangeRule,
    ReferenceExistsRule,
    parse_rules,
)
from .rule_config import QualityRuleDefinition, RuleCatalog, RuleConfigLoader
from .rule_engine import RuleEngine, RuleEvaluation, RuleFailure

__all__ = [
    "QualityRule",
    "NotNullRule",
    "NotEmptyRule",
    "ReferenceExistsRule",
    "RangeRule",
    "AllowedValuesRule",
    "AnyPresentRule",
    "parse_rules",
    "QualityRuleDefinition",
    "RuleCatalog",
    "RuleConfigLoader",
    "RuleEngine",
    "RuleEvaluation",
    "RuleFailure",
]
