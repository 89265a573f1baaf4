"""
Unit tests for quality rules, the rule catalog and the rule engine.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from golden_layer.core.rules import (
    AllowedValuesRule,
    AnyPresentRule,
    NotEmptyRule,
    NotNullRule,
    QualityRuleDefinition,
    RangeRule,
    ReferenceExistsRule,
    RuleCatalog,
    RuleConfigLoader,
    RuleEngine,
    parse_rules,
)


def _no_refs(entity_type, key):
    return False


@pytest.mark.unit
class TestRuleKinds:
    """Tests for individual rule kinds"""

    def test_not_null(self):
        rule = NotNullRule(rule_code="START_DATE_VALID", field_name="start_date")
        assert rule.check({"start_date": None}, _no_refs) is not None
        assert rule.check({}, _no_refs) is not None
        assert rule.check({"start_date": "2015-03-01"}, _no_refs) is None

    def test_not_empty(self):
        rule = NotEmptyRule(rule_code="NAME_NOT_EMPTY", field_name="name")
        assert rule.check({"name": ""}, _no_refs) == "name is NULL or empty"
        assert rule.check({"name": "   "}, _no_refs) is not None
        assert rule.check({"name": None}, _no_refs) is not None
        assert rule.check({"name": "Core"}, _no_refs) is None

    def test_reference_exists(self):
        known = {("investment_team", "IT-10001")}
        rule = ReferenceExistsRule(
            rule_code="PG_TEAM_EXISTS",
            field_name="investment_team_enterprise_key",
            target_entity="investment_team",
        )

        def exists(entity_type, key):
            return (entity_type, key) in known

        assert rule.check({"investment_team_enterprise_key": "IT-10001"}, exists) is None
        detail = rule.check({"investment_team_enterprise_key": "IT-99999"}, exists)
        assert "IT-99999" in detail
        assert "investment_team" in detail

    def test_reference_exists_skips_null(self):
        rule = ReferenceExistsRule(rule_code="X", field_name="ref", target_entity="asset")
        assert rule.check({"ref": None}, _no_refs) is None

    @pytest.mark.parametrize("value,ok", [
        (Decimal("0"), False),
        (Decimal("0.0001"), True),
        (Decimal("0.5"), True),
        (Decimal("1"), True),
        (Decimal("1.0001"), False),
        (None, False),
    ])
    def test_range_half_open(self, value, ok):
        rule = RangeRule(
            rule_code="PE_PCT_RANGE",
            field_name="ownership_pct",
            min_value=Decimal("0"),
            max_value=Decimal("1"),
            min_inclusive=False,
        )
        assert (rule.check({"ownership_pct": value}, _no_refs) is None) is ok

    def test_range_bounds_in_detail(self):
        rule = RangeRule(rule_code="R", field_name="x", min_value=Decimal("0"), min_inclusive=False)
        assert rule.check({"x": Decimal("-1")}, _no_refs) == "x -1 not in (0, inf]"

    def test_allowed_values(self):
        rule = AllowedValuesRule(rule_code="SEC_TYPE_VALID", field_name="security_type", allowed=["EQUITY", "BOND"])
        assert rule.check({"security_type": "EQUITY"}, _no_refs) is None
        assert rule.check({"security_type": "SWAP"}, _no_refs) == "security_type 'SWAP' not in valid list"
        assert rule.check({"security_type": None}, _no_refs) is not None

    def test_any_present(self):
        rule = AnyPresentRule(
            rule_code="TXN_AMOUNT_PRESENT",
            field_name="amount",
            fields=["amount_local", "amount_base"],
        )
        assert rule.check({"amount_local": None, "amount_base": None}, _no_refs) is not None
        assert rule.check({"amount_local": None, "amount_base": Decimal("5")}, _no_refs) is None

    def test_rules_are_frozen(self):
        rule = NotNullRule(rule_code="A", field_name="a")
        with pytest.raises(ValidationError):
            rule.rule_code = "B"


@pytest.mark.unit
class TestParseRules:
    """Tests for building rules from dictionaries"""

    def test_parse_tagged_rules(self):
        rules = parse_rules([
            {"kind": "not_null", "rule_code": "A", "field_name": "a"},
            {"kind": "allowed_values", "rule_code": "B", "field_name": "b", "allowed": ["X"]},
            {"kind": "range", "rule_code": "C", "field_name": "c", "min_value": "0", "max_value": "1"},
        ])

        assert [type(r) for r in rules] == [NotNullRule, AllowedValuesRule, RangeRule]
        assert rules[2].max_value == Decimal("1")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_rules([{"kind": "regex", "rule_code": "A", "field_name": "a"}])

    def test_missing_parameter_rejected(self):
        with pytest.raises(ValidationError):
            parse_rules([{"kind": "reference_exists", "rule_code": "A", "field_name": "a"}])


@pytest.mark.unit
class TestRuleCatalog:
    """Tests for RuleCatalog"""

    def test_undefined_code_is_active_and_fails(self):
        catalog = RuleCatalog()
        assert catalog.is_active("ANYTHING", "asset")
        assert catalog.severity_of("ANYTHING", "asset") == "EXPECT_OR_FAIL"

    def test_entity_definition_overrides_wildcard(self):
        catalog = RuleCatalog([
            QualityRuleDefinition(rule_code="NAME_NOT_EMPTY", rule_name="Name", target_entity="*"),
            QualityRuleDefinition(
                rule_code="NAME_NOT_EMPTY",
                rule_name="Name",
                target_entity="asset",
                severity="EXPECT_OR_WARN",
            ),
        ])

        assert catalog.severity_of("NAME_NOT_EMPTY", "asset") == "EXPECT_OR_WARN"
        assert catalog.severity_of("NAME_NOT_EMPTY", "entity") == "EXPECT_OR_FAIL"


@pytest.mark.unit
class TestRuleEngine:
    """Tests for RuleEngine"""

    def setup_method(self):
        self.rules = [
            NotEmptyRule(rule_code="NAME_NOT_EMPTY", field_name="name"),
            NotNullRule(rule_code="START_DATE_VALID", field_name="start_date"),
        ]

    def test_all_rules_evaluated(self):
        engine = RuleEngine("investment_team", self.rules)

        evaluation = engine.evaluate({"name": "", "start_date": None}, _no_refs)

        assert not evaluation.passed
        assert [f.rule_code for f in evaluation.failures] == ["NAME_NOT_EMPTY", "START_DATE_VALID"]

    def test_passing_record(self):
        engine = RuleEngine("investment_team", self.rules)

        evaluation = engine.evaluate({"name": "Core", "start_date": "2015-03-01"}, _no_refs)

        assert evaluation.passed
        assert evaluation.passed_rules == ["NAME_NOT_EMPTY", "START_DATE_VALID"]

    def test_inactive_rule_skipped(self):
        catalog = RuleCatalog([
            QualityRuleDefinition(rule_code="START_DATE_VALID", rule_name="Start", is_active=False),
        ])
        engine = RuleEngine("investment_team", self.rules, catalog)

        evaluation = engine.evaluate({"name": "Core", "start_date": None}, _no_refs)

        assert evaluation.passed
        assert engine.get_rule_summary()["rule_codes"] == ["NAME_NOT_EMPTY"]

    def test_warn_rule_does_not_fail(self):
        catalog = RuleCatalog([
            QualityRuleDefinition(rule_code="START_DATE_VALID", rule_name="Start", severity="EXPECT_OR_WARN"),
        ])
        engine = RuleEngine("investment_team", self.rules, catalog)

        evaluation = engine.evaluate({"name": "Core", "start_date": None}, _no_refs)

        assert evaluation.passed
        assert [w.rule_code for w in evaluation.warnings] == ["START_DATE_VALID"]

    def test_catalog_entity_rules_appended(self):
        catalog = RuleCatalog(entity_rules={
            "investment_team": [AllowedValuesRule(rule_code="TEAM_CODE_VALID", field_name="code", allowed=["A"])],
        })
        engine = RuleEngine("investment_team", self.rules, catalog)

        summary = engine.get_rule_summary()

        assert summary["total_rules"] == 3
        assert summary["rules_by_kind"] == {"not_empty": 1, "not_null": 1, "allowed_values": 1}


@pytest.mark.unit
class TestRuleConfigLoader:
    """Tests for RuleConfigLoader"""

    def test_load_catalog(self, tmp_path):
        config = tmp_path / "rules.yaml"
        config.write_text(
            "definitions:\n"
            "  - rule_code: ASSET_NAME_NOT_EMPTY\n"
            "    rule_name: Asset Name Not Empty\n"
            "    target_entity: asset\n"
            "    rule_type: COMPLETENESS\n"
            "    severity: EXPECT_OR_WARN\n"
            "entity_rules:\n"
            "  asset:\n"
            "    - kind: allowed_values\n"
            "      rule_code: ASSET_STATUS_VALID\n"
            "      field_name: asset_status\n"
            "      allowed: [ACTIVE, DISPOSED]\n"
        )

        catalog = RuleConfigLoader(config).load_catalog()

        assert catalog.severity_of("ASSET_NAME_NOT_EMPTY", "asset") == "EXPECT_OR_WARN"
        extra = catalog.extra_rules_for("asset")
        assert len(extra) == 1
        assert extra[0].allowed == ["ACTIVE", "DISPOSED"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuleConfigLoader(tmp_path / "missing.yaml")

    def test_missing_definitions_section(self, tmp_path):
        config = tmp_path / "rules.yaml"
        config.write_text("entity_rules: {}\n")
        with pytest.raises(ValueError, match="definitions"):
            RuleConfigLoader(config).load_catalog()

    def test_entity_rules_must_be_list(self, tmp_path):
        config = tmp_path / "rules.yaml"
        config.write_text(
            "definitions: []\n"
            "entity_rules:\n"
            "  asset: {kind: not_null}\n"
        )
        with pytest.raises(ValueError, match="must be a list"):
            RuleConfigLoader(config).load_catalog()
