"""
Built-in governance seed: source systems, identifier spaces, crosswalk rules
and paths, and the quality-rule catalog.

The YAML files under config/ carry the same content; this module lets tests
and embedded runs build a complete engine without touching the filesystem.
"""

from datetime import date

from golden_layer.core.crosswalk import DEFAULT_MAX_HOPS, CrosswalkGraph
from golden_layer.core.models import (
    CrosswalkPath,
    CrosswalkRule,
    KeySpace,
    PrefixTransformation,
    SourceSystem,
    SourceSystemRegistry,
)
from golden_layer.core.rules import QualityRuleDefinition, RuleCatalog

# =======================
# SOURCE SYSTEMS
# =======================

SRC_ENTERPRISE = 1
SRC_ENTITY_MGMT = 2
SRC_ASSET_MGMT = 3
SRC_SECURITY_MGMT = 4
SRC_TXN_MGMT = 5
SRC_WS_ONLINE = 6

SOURCE_SYSTEMS = [
    SourceSystem(source_system_id=SRC_ENTERPRISE, system_code="SRC_ENTERPRISE",
                 system_name="Enterprise Data Platform", system_type="REFERENCE_DATA"),
    SourceSystem(source_system_id=SRC_ENTITY_MGMT, system_code="SRC_ENTITY_MGMT",
                 system_name="Source Entity Management", system_type="ENTITY_MANAGEMENT"),
    SourceSystem(source_system_id=SRC_ASSET_MGMT, system_code="SRC_ASSET_MGMT",
                 system_name="Source Asset Management", system_type="ASSET_MANAGEMENT"),
    SourceSystem(source_system_id=SRC_SECURITY_MGMT, system_code="SRC_SECURITY_MGMT",
                 system_name="Source Security Management", system_type="SECURITY_MASTER"),
    SourceSystem(source_system_id=SRC_TXN_MGMT, system_code="SRC_TXN_MGMT",
                 system_name="Source Transaction Management", system_type="TRANSACTION_MANAGEMENT"),
    SourceSystem(source_system_id=SRC_WS_ONLINE, system_code="SRC_WS_ONLINE",
                 system_name="Source Wall Street Online", system_type="MARKET_DATA"),
]

# =======================
# IDENTIFIER SPACES
# =======================

INVESTMENT_TEAM_EK = "investment_team_enterprise_key"
PORTFOLIO_GROUP_EK = "portfolio_group_enterprise_key"
PORTFOLIO_EK = "portfolio_enterprise_key"
ENTITY_EK = "entity_enterprise_key"
ASSET_EK = "asset_enterprise_key"
SECURITY_EK = "security_enterprise_key"

ENT_INVESTMENT_TEAM_ID = "ent_investment_team_id"
ENT_PORTFOLIO_GROUP_ID = "ent_portfolio_group_id"
ENT_PORTFOLIO_ID = "ent_portfolio_id"
SEM_ENTITY_ID = "sem_entity_id"
SEM_PORTFOLIO_REF_ID = "sem_portfolio_ref_id"
SEM_ASSET_REF_ID = "sem_asset_ref_id"
SAM_ASSET_ID = "sam_asset_id"
SSM_SECURITY_ID = "ssm_security_id"
STM_TRANSACTION_ID = "stm_transaction_id"
STM_PORTFOLIO_ID = "stm_portfolio_id"
STM_ENTITY_ID = "stm_entity_id"
STM_SECURITY_ID = "stm_security_id"
WSO_SECURITY_ID = "wso_security_id"
WSO_TICKER = "wso_ticker"
WSO_CUSIP = "wso_cusip"
SSM_TEAM_REF_ID = "ssm_team_ref_id"
SSM_ENTITY_REF_ID = "ssm_entity_ref_id"
SSM_ASSET_REF_ID = "ssm_asset_ref_id"


def _space(key_id: int, name: str, system: int, key_type: str, examples: list[str], description: str) -> KeySpace:
    return KeySpace(
        key_id=key_id,
        name=name,
        source_system_id=system,
        key_type=key_type,
        example_values=examples,
        description=description,
    )


KEY_SPACES = [
    _space(1, INVESTMENT_TEAM_EK, SRC_ENTERPRISE, "NATURAL", ["IT-001"], "Canonical investment team key"),
    _space(2, PORTFOLIO_GROUP_EK, SRC_ENTERPRISE, "NATURAL", ["PG-001"], "Canonical portfolio group (fund) key"),
    _space(3, PORTFOLIO_EK, SRC_ENTERPRISE, "NATURAL", ["P-001"], "Canonical portfolio key"),
    _space(4, ENTITY_EK, SRC_ENTITY_MGMT, "NATURAL", ["E-001"], "Canonical entity key"),
    _space(5, ASSET_EK, SRC_ASSET_MGMT, "NATURAL", ["A-001"], "Canonical asset key"),
    _space(6, SECURITY_EK, SRC_SECURITY_MGMT, "NATURAL", ["SEC-001"], "Canonical security key"),
    _space(7, ENT_INVESTMENT_TEAM_ID, SRC_ENTERPRISE, "PRIMARY", ["ENT-IT-10001"], "Enterprise investment team id"),
    _space(8, ENT_PORTFOLIO_GROUP_ID, SRC_ENTERPRISE, "PRIMARY", ["ENT-PG-20001"], "Enterprise portfolio group id"),
    _space(9, ENT_PORTFOLIO_ID, SRC_ENTERPRISE, "PRIMARY", ["ENT-P-30001"], "Enterprise portfolio id"),
    _space(10, SEM_ENTITY_ID, SRC_ENTITY_MGMT, "PRIMARY", ["SEM-E-20001"], "Entity management entity id"),
    _space(11, SEM_PORTFOLIO_REF_ID, SRC_ENTITY_MGMT, "FOREIGN", ["SEM-P-30001"], "Entity management portfolio reference"),
    _space(12, SEM_ASSET_REF_ID, SRC_ENTITY_MGMT, "FOREIGN", ["SEM-A-40001"], "Entity management asset reference"),
    _space(13, SAM_ASSET_ID, SRC_ASSET_MGMT, "PRIMARY", ["SAM-A-40001"], "Asset management asset id"),
    _space(14, SSM_SECURITY_ID, SRC_SECURITY_MGMT, "PRIMARY", ["SSM-SEC-50001"], "Security master security id"),
    _space(15, STM_TRANSACTION_ID, SRC_TXN_MGMT, "PRIMARY", ["STM-TXN-60001"], "Transaction id"),
    _space(16, STM_PORTFOLIO_ID, SRC_TXN_MGMT, "FOREIGN", ["STM-P-30001"], "Transaction portfolio reference"),
    _space(17, STM_ENTITY_ID, SRC_TXN_MGMT, "FOREIGN", ["STM-E-20001"], "Transaction entity reference"),
    _space(18, STM_SECURITY_ID, SRC_TXN_MGMT, "FOREIGN", ["STM-SEC-50001"], "Transaction security reference"),
    _space(19, WSO_SECURITY_ID, SRC_WS_ONLINE, "PRIMARY", ["WSO-SEC-70001"], "Market data security id"),
    _space(20, WSO_TICKER, SRC_WS_ONLINE, "NATURAL", ["MER.RE"], "Public ticker symbol"),
    _space(21, WSO_CUSIP, SRC_WS_ONLINE, "NATURAL", ["59156R100"], "CUSIP identifier"),
    _space(22, SSM_TEAM_REF_ID, SRC_SECURITY_MGMT, "FOREIGN", ["SSM-IT-001"], "Security master team reference"),
    _space(23, SSM_ENTITY_REF_ID, SRC_SECURITY_MGMT, "FOREIGN", ["SSM-E-20001"], "Security master entity reference"),
    _space(24, SSM_ASSET_REF_ID, SRC_SECURITY_MGMT, "FOREIGN", ["SSM-A-40001"], "Security master asset reference"),
]

# =======================
# CROSSWALK RULES AND PATHS
# =======================

_VALIDATED = date(2025, 1, 15)


def _prefix_rule(
    crosswalk_id: int,
    from_space: str,
    to_space: str,
    strip_prefix: str,
    add_prefix: str,
    validated_by: str,
    conditions: str | None = None,
) -> CrosswalkRule:
    return CrosswalkRule(
        crosswalk_id=crosswalk_id,
        from_space=from_space,
        to_space=to_space,
        mapping_type="1:1",
        confidence="EXACT",
        transformation=PrefixTransformation(strip_prefix=strip_prefix, add_prefix=add_prefix),
        conditions=conditions,
        bidirectional=True,
        validated_by=validated_by,
        validation_date=_VALIDATED,
    )


CROSSWALK_RULES = [
    _prefix_rule(1, ENT_INVESTMENT_TEAM_ID, INVESTMENT_TEAM_EK, "ENT-IT-", "IT-", "M. Thompson"),
    _prefix_rule(2, ENT_PORTFOLIO_GROUP_ID, PORTFOLIO_GROUP_EK, "ENT-PG-", "PG-", "M. Thompson"),
    _prefix_rule(3, ENT_PORTFOLIO_ID, PORTFOLIO_EK, "ENT-P-", "P-", "M. Thompson"),
    _prefix_rule(4, SEM_ENTITY_ID, ENTITY_EK, "SEM-E-", "E-", "J. Martinez"),
    _prefix_rule(5, SEM_PORTFOLIO_REF_ID, PORTFOLIO_EK, "SEM-P-", "P-", "J. Martinez", "FK ref to portfolio"),
    _prefix_rule(6, SEM_ASSET_REF_ID, ASSET_EK, "SEM-A-", "A-", "J. Martinez", "FK ref to asset"),
    _prefix_rule(7, SAM_ASSET_ID, ASSET_EK, "SAM-A-", "A-", "K. Williams"),
    _prefix_rule(8, SSM_SECURITY_ID, SECURITY_EK, "SSM-SEC-", "SEC-", "L. Garcia"),
    _prefix_rule(9, STM_PORTFOLIO_ID, PORTFOLIO_EK, "STM-P-", "P-", "R. Chen", "FK ref to portfolio"),
    _prefix_rule(10, STM_ENTITY_ID, ENTITY_EK, "STM-E-", "E-", "R. Chen", "FK ref to entity"),
    _prefix_rule(11, STM_SECURITY_ID, SECURITY_EK, "STM-SEC-", "SEC-", "R. Chen", "FK ref to security"),
    _prefix_rule(12, WSO_SECURITY_ID, SECURITY_EK, "WSO-SEC-", "SEC-", "A. Patel",
                 "External mapping via composite assembly"),
    _prefix_rule(13, SSM_TEAM_REF_ID, INVESTMENT_TEAM_EK, "SSM-IT-", "IT-", "L. Garcia", "FK ref to team"),
    _prefix_rule(14, SSM_ENTITY_REF_ID, ENTITY_EK, "SSM-E-", "E-", "L. Garcia", "FK ref to entity"),
    _prefix_rule(15, SSM_ASSET_REF_ID, ASSET_EK, "SSM-A-", "A-", "L. Garcia", "FK ref to asset"),
    # Lookup edges resolved through the conformed security, no key transformation
    CrosswalkRule(crosswalk_id=16, from_space=SECURITY_EK, to_space=ASSET_EK, mapping_type="N:1",
                  confidence="HIGH", conditions="via conformed security"),
    CrosswalkRule(crosswalk_id=17, from_space=SECURITY_EK, to_space=ENTITY_EK, mapping_type="N:1",
                  confidence="HIGH", conditions="via conformed security"),
]

CROSSWALK_PATHS = [
    CrosswalkPath(from_space=STM_SECURITY_ID, to_space=ASSET_EK, crosswalk_ids=[11, 16], hop_count=2,
                  reliability="HIGH", description="STM security -> security key -> asset key"),
    CrosswalkPath(from_space=WSO_SECURITY_ID, to_space=ENTITY_EK, crosswalk_ids=[12, 17], hop_count=2,
                  reliability="HIGH", description="WSO security -> security key -> entity key"),
]

# =======================
# QUALITY RULE CATALOG
# =======================


def _definition(rule_code: str, rule_name: str, target_entity: str, rule_type: str, description: str | None = None):
    return QualityRuleDefinition(
        rule_code=rule_code,
        rule_name=rule_name,
        target_entity=target_entity,
        rule_type=rule_type,
        severity="EXPECT_OR_FAIL",
        description=description,
    )


RULE_DEFINITIONS = [
    _definition("NOT_NULL_EK", "Enterprise Key Not Null", "*", "COMPLETENESS"),
    _definition("NAME_NOT_EMPTY", "Team Name Required", "investment_team", "COMPLETENESS",
                "Registered as TEAM_NAME_NOT_EMPTY in earlier catalogs"),
    _definition("START_DATE_VALID", "Start Date Parseable", "investment_team", "VALIDITY"),
    _definition("PG_TEAM_EXISTS", "Portfolio Group Team FK Valid", "portfolio_group", "REFERENTIAL"),
    _definition("PG_NAME_NOT_EMPTY", "Portfolio Group Name Required", "portfolio_group", "COMPLETENESS"),
    _definition("PORT_PG_EXISTS", "Portfolio Group FK Valid", "portfolio", "REFERENTIAL"),
    _definition("PORT_NAME_NOT_EMPTY", "Portfolio Name Required", "portfolio", "COMPLETENESS"),
    _definition("ENTITY_NAME_NOT_EMPTY", "Entity Name Required", "entity", "COMPLETENESS"),
    _definition("ASSET_NAME_NOT_EMPTY", "Asset Name Required", "asset", "COMPLETENESS"),
    _definition("ASSET_TYPE_NOT_EMPTY", "Asset Type Required", "asset", "COMPLETENESS"),
    _definition("PE_PORTFOLIO_EXISTS", "Ownership Portfolio FK Valid", "portfolio_entity_ownership", "REFERENTIAL"),
    _definition("PE_ENTITY_EXISTS", "Ownership Entity FK Valid", "portfolio_entity_ownership", "REFERENTIAL"),
    _definition("PE_PCT_RANGE", "Ownership Pct In Range", "portfolio_entity_ownership", "VALIDITY"),
    _definition("PE_EFFECTIVE_DATE_VALID", "Ownership Effective Date Parseable",
                "portfolio_entity_ownership", "VALIDITY"),
    _definition("EA_ENTITY_EXISTS", "Ownership Entity FK Valid", "entity_asset_ownership", "REFERENTIAL"),
    _definition("EA_ASSET_EXISTS", "Ownership Asset FK Valid", "entity_asset_ownership", "REFERENTIAL"),
    _definition("EA_PCT_RANGE", "Ownership Pct In Range", "entity_asset_ownership", "VALIDITY"),
    _definition("EA_EFFECTIVE_DATE_VALID", "Ownership Effective Date Parseable",
                "entity_asset_ownership", "VALIDITY"),
    _definition("PRICE_DATE_VALID", "Price Date Parseable", "ws_online_pricing", "VALIDITY"),
    _definition("PRICE_WSO_SEC_EXISTS", "Priced Security Known", "ws_online_pricing", "REFERENTIAL"),
    _definition("SEC_TYPE_VALID", "Security Type Valid", "security", "VALIDITY"),
    _definition("SEC_HAS_ENTITY", "Security Entity Reference Present", "security", "COMPLETENESS"),
    _definition("SEC_ENTITY_EXISTS", "Security Entity FK Valid", "security", "REFERENTIAL"),
    _definition("TXN_SECURITY_EXISTS", "Transaction Security FK Valid", "position_transaction", "REFERENTIAL"),
    _definition("TXN_PORTFOLIO_EXISTS", "Transaction Portfolio FK Valid", "position_transaction", "REFERENTIAL"),
    _definition("TXN_ENTITY_EXISTS", "Transaction Entity FK Valid", "position_transaction", "REFERENTIAL"),
    _definition("TXN_AMOUNT_PRESENT", "Transaction Amount Present", "position_transaction", "COMPLETENESS"),
    _definition("TXN_DATE_VALID", "Transaction Date Parseable", "position_transaction", "VALIDITY"),
    _definition("TXN_TYPE_NOT_NULL", "Transaction Type Required", "position_transaction", "COMPLETENESS"),
    _definition("TXN_STATUS_NOT_NULL", "Transaction Status Required", "position_transaction", "COMPLETENESS"),
]


def source_registry() -> SourceSystemRegistry:
    return SourceSystemRegistry(SOURCE_SYSTEMS)


def crosswalk_graph(max_hops: int = DEFAULT_MAX_HOPS) -> CrosswalkGraph:
    """Crosswalk graph built from the seed spaces, rules and paths."""
    return CrosswalkGraph(rules=CROSSWALK_RULES, paths=CROSSWALK_PATHS, spaces=KEY_SPACES, max_hops=max_hops)


def rule_catalog() -> RuleCatalog:
    return RuleCatalog(RULE_DEFINITIONS)
