"""
Security master entity, assembled with the market data securities.
"""

from golden_layer.conformance.assembler import (
    MATCH_CONFIDENCE_FIELD,
    MATCH_FIELDS,
    MATCH_KEY_FIELD,
    MATCH_SECURITY_FIELD,
    MATCH_STATUS_FIELD,
)
from golden_layer.conformance.entity import EntityDefinition, FieldSpec, KeyMapping
from golden_layer.core.rules import AllowedValuesRule, ReferenceExistsRule

from . import seed

VALID_SECURITY_TYPES = [
    "EQUITY",
    "SENIOR_DEBT",
    "MEZZANINE",
    "SUBORDINATED_DEBT",
    "CONVERTIBLE",
    "PREFERRED",
    "DERIVATIVE",
    "WARRANT",
    "OPTION",
]

SECURITY = EntityDefinition(
    entity_type="security",
    pipeline_code="PL_SECURITY_DAILY",
    source_system_id=seed.SRC_SECURITY_MGMT,
    stream="src_security_mgmt_raw",
    source_key=["security_id"],
    columns=[
        FieldSpec(name="security_type", kind="CODE"),
        FieldSpec(name="security_group"),
        FieldSpec(name="security_name"),
        FieldSpec(name="security_status", kind="CODE"),
        FieldSpec(name="bank_loan_id", kind="OPTIONAL_TEXT"),
        FieldSpec(name="cusip", kind="OPTIONAL_TEXT"),
        FieldSpec(name="isin", kind="OPTIONAL_TEXT"),
        FieldSpec(name="ticker", kind="OPTIONAL_TEXT"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="security_enterprise_key",
            source_field="security_id",
            from_space=seed.SSM_SECURITY_ID,
            to_space=seed.SECURITY_EK,
            rule_code="NOT_NULL_EK",
        ),
        KeyMapping(
            target_field="investment_team_enterprise_key",
            source_field="team_ref",
            from_space=seed.SSM_TEAM_REF_ID,
            to_space=seed.INVESTMENT_TEAM_EK,
            required=False,
        ),
        KeyMapping(
            target_field="entity_enterprise_key",
            source_field="entity_ref",
            from_space=seed.SSM_ENTITY_REF_ID,
            to_space=seed.ENTITY_EK,
            rule_code="SEC_HAS_ENTITY",
        ),
        KeyMapping(
            target_field="asset_enterprise_key",
            source_field="asset_ref",
            from_space=seed.SSM_ASSET_REF_ID,
            to_space=seed.ASSET_EK,
            required=False,
        ),
    ],
    enterprise_key_fields=["security_enterprise_key"],
    derived_fields=MATCH_FIELDS,
    hash_fields=[
        "security_type",
        "security_group",
        "security_name",
        "security_status",
        "investment_team_enterprise_key",
        "entity_enterprise_key",
        "asset_enterprise_key",
        "bank_loan_id",
        "cusip",
        "isin",
        "ticker",
        MATCH_STATUS_FIELD,
        MATCH_KEY_FIELD,
        MATCH_CONFIDENCE_FIELD,
        MATCH_SECURITY_FIELD,
    ],
    rules=[
        AllowedValuesRule(rule_code="SEC_TYPE_VALID", field_name="security_type", allowed=VALID_SECURITY_TYPES),
        ReferenceExistsRule(rule_code="SEC_ENTITY_EXISTS", field_name="entity_enterprise_key", target_entity="entity"),
    ],
)

DEFINITIONS = [SECURITY]
