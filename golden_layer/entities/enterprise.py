"""
Enterprise data platform entities: investment teams, portfolio groups and
portfolios. All three share the ``src_enterprise_raw`` stream.
"""

from golden_layer.conformance.entity import EntityDefinition, FieldSpec, KeyMapping
from golden_layer.core.rules import NotEmptyRule, NotNullRule, ReferenceExistsRule

from . import seed

STREAM = "src_enterprise_raw"
PIPELINE = "PL_ENTERPRISE_DAILY"

INVESTMENT_TEAM = EntityDefinition(
    entity_type="investment_team",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_ENTERPRISE,
    stream=STREAM,
    record_type="investment_team",
    source_key=["investment_team_id"],
    columns=[
        FieldSpec(name="investment_team_name", source="team_name"),
        FieldSpec(name="investment_team_short_name", source="team_short_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="start_date", kind="DATE"),
        FieldSpec(name="stop_date", kind="DATE"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="investment_team_enterprise_key",
            source_field="investment_team_id",
            from_space=seed.ENT_INVESTMENT_TEAM_ID,
            to_space=seed.INVESTMENT_TEAM_EK,
            rule_code="NOT_NULL_EK",
        ),
    ],
    enterprise_key_fields=["investment_team_enterprise_key"],
    hash_fields=["investment_team_name", "investment_team_short_name", "start_date", "stop_date"],
    rules=[
        NotEmptyRule(rule_code="NAME_NOT_EMPTY", field_name="investment_team_name"),
        NotNullRule(rule_code="START_DATE_VALID", field_name="start_date"),
    ],
)

PORTFOLIO_GROUP = EntityDefinition(
    entity_type="portfolio_group",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_ENTERPRISE,
    stream=STREAM,
    record_type="portfolio_group",
    source_key=["portfolio_group_id"],
    columns=[
        FieldSpec(name="portfolio_group_name", source="pg_name"),
        FieldSpec(name="portfolio_group_short_name", source="pg_short_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="portfolio_group_description", source="pg_description"),
        FieldSpec(name="vintage_year", kind="INTEGER"),
        FieldSpec(name="strategy"),
        FieldSpec(name="committed_capital", kind="DECIMAL", precision=18, scale=2),
        FieldSpec(name="committed_capital_currency", source="committed_capital_ccy", kind="CODE"),
        FieldSpec(name="fund_status", kind="CODE"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="portfolio_group_enterprise_key",
            source_field="portfolio_group_id",
            from_space=seed.ENT_PORTFOLIO_GROUP_ID,
            to_space=seed.PORTFOLIO_GROUP_EK,
            rule_code="NOT_NULL_EK",
        ),
        KeyMapping(
            target_field="investment_team_enterprise_key",
            source_field="pg_team_ref",
            from_space=seed.ENT_INVESTMENT_TEAM_ID,
            to_space=seed.INVESTMENT_TEAM_EK,
            rule_code="PG_TEAM_EXISTS",
        ),
    ],
    enterprise_key_fields=["portfolio_group_enterprise_key"],
    hash_fields=[
        "portfolio_group_name",
        "portfolio_group_short_name",
        "portfolio_group_description",
        "investment_team_enterprise_key",
        "vintage_year",
        "strategy",
        "committed_capital",
        "committed_capital_currency",
        "fund_status",
    ],
    rules=[
        ReferenceExistsRule(
            rule_code="PG_TEAM_EXISTS",
            field_name="investment_team_enterprise_key",
            target_entity="investment_team",
        ),
        NotEmptyRule(rule_code="PG_NAME_NOT_EMPTY", field_name="portfolio_group_name"),
    ],
)

PORTFOLIO = EntityDefinition(
    entity_type="portfolio",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_ENTERPRISE,
    stream=STREAM,
    record_type="portfolio",
    source_key=["portfolio_id"],
    columns=[
        FieldSpec(name="portfolio_name", source="port_name"),
        FieldSpec(name="portfolio_short_name", source="port_short_name", kind="OPTIONAL_TEXT"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="portfolio_enterprise_key",
            source_field="portfolio_id",
            from_space=seed.ENT_PORTFOLIO_ID,
            to_space=seed.PORTFOLIO_EK,
            rule_code="NOT_NULL_EK",
        ),
        KeyMapping(
            target_field="portfolio_group_enterprise_key",
            source_field="port_pg_ref",
            from_space=seed.ENT_PORTFOLIO_GROUP_ID,
            to_space=seed.PORTFOLIO_GROUP_EK,
            rule_code="PORT_PG_EXISTS",
        ),
    ],
    enterprise_key_fields=["portfolio_enterprise_key"],
    hash_fields=["portfolio_name", "portfolio_short_name", "portfolio_group_enterprise_key"],
    rules=[
        ReferenceExistsRule(
            rule_code="PORT_PG_EXISTS",
            field_name="portfolio_group_enterprise_key",
            target_entity="portfolio_group",
        ),
        NotEmptyRule(rule_code="PORT_NAME_NOT_EMPTY", field_name="portfolio_name"),
    ],
)

DEFINITIONS = [INVESTMENT_TEAM, PORTFOLIO_GROUP, PORTFOLIO]
