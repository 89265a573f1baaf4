"""
Quality-rule catalog configuration.

The catalog is governance data: it names every rule code, classifies it and
decides whether it is active and whether a failure quarantines the record
(EXPECT_OR_FAIL) or only logs a warning (EXPECT_OR_WARN). Extra typed rules
per entity can be declared in the same file.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from .quality_rule import QualityRule, parse_rules

RuleType = Literal["COMPLETENESS", "VALIDITY", "REFERENTIAL", "CONSISTENCY"]
RuleSeverity = Literal["EXPECT_OR_FAIL", "EXPECT_OR_WARN"]

ANY_ENTITY = "*"


class QualityRuleDefinition(BaseModel):
    """
    Governance record for one rule code.

    Attributes:
        rule_code: Rule identifier referenced by entity definitions
        rule_name: Display name
        target_entity: Entity the definition applies to, "*" for all
        rule_type: COMPLETENESS, VALIDITY, REFERENTIAL or CONSISTENCY
        severity: EXPECT_OR_FAIL quarantines, EXPECT_OR_WARN only logs
        is_active: Inactive rules are not evaluated
        description: Free-text description
    """

    rule_code: str = Field(..., min_length=1)
    rule_name: str = Field(..., min_length=1)
    target_entity: str = ANY_ENTITY
    rule_type: RuleType = "VALIDITY"
    severity: RuleSeverity = "EXPECT_OR_FAIL"
    is_active: bool = True
    description: str | None = None


class RuleCatalog:
    """
    Lookup over quality-rule definitions.

    Entity-specific definitions take precedence over "*" definitions.
    Rule codes without a definition are active with EXPECT_OR_FAIL.
    """

    def __init__(
        self,
        definitions: list[QualityRuleDefinition] | None = None,
        entity_rules: dict[str, list[QualityRule]] | None = None,
    ):
        self._definitions: dict[tuple[str, str], QualityRuleDefinition] = {}
        for definition in definitions or []:
            self._definitions[(definition.target_entity, definition.rule_code)] = definition
        self._entity_rules = entity_rules or {}

    def lookup(self, rule_code: str, target_entity: str) -> QualityRuleDefinition | None:
        return (
            self._definitions.get((target_entity, rule_code))
            or self._definitions.get((ANY_ENTITY, rule_code))
        )

    def is_active(self, rule_code: str, target_entity: str) -> bool:
        definition = self.lookup(rule_code, target_entity)
        return definition is None or definition.is_active

    def severity_of(self, rule_code: str, target_entity: str) -> RuleSeverity:
        definition = self.lookup(rule_code, target_entity)
        return definition.severity if definition else "EXPECT_OR_FAIL"

    def extra_rules_for(self, target_entity: str) -> list[QualityRule]:
        """Typed rules declared in configuration for an entity."""
        return list(self._entity_rules.get(target_entity, []))

    @property
    def definitions(self) -> list[QualityRuleDefinition]:
        return list(self._definitions.values())


class RuleConfigLoader:
    """
    Loads the quality-rule catalog from a YAML file.

    Expected YAML format:
    ```yaml
    definitions:
      - rule_code: NOT_NULL_EK
        rule_name: Enterprise Key Not Null
        target_entity: "*"
        rule_type: COMPLETENESS
        severity: EXPECT_OR_FAIL

    entity_rules:
      asset:
        - kind: allowed_values
          rule_code: ASSET_STATUS_VALID
          field_name: asset_status
          allowed: [ACTIVE, DISPOSED]
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load_catalog(self) -> RuleCatalog:
        """
        Load and parse the rule catalog.

        Returns:
            RuleCatalog with definitions and extra entity rules

        Raises:
            ValueError: If the YAML is empty or sections are malformed
            pydantic.ValidationError: If a definition or rule is invalid
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "definitions" not in config:
            raise ValueError("Configuration file must contain 'definitions' section")

        definitions = [QualityRuleDefinition(**d) for d in config["definitions"]]
        entity_rules = self._parse_entity_rules(config.get("entity_rules") or {})
        return RuleCatalog(definitions, entity_rules)

    def _parse_entity_rules(self, section: dict[str, Any]) -> dict[str, list[QualityRule]]:
        parsed: dict[str, list[QualityRule]] = {}
        for entity_type, rule_list in section.items():
            if not isinstance(rule_list, list):
                raise ValueError(f"Rules for entity '{entity_type}' must be a list")
            parsed[entity_type] = parse_rules(rule_list)
        return parsed
