"""
Market data entities from the Wall Street Online feed.

Securities are keyed by the vendor id as-is; they are the external side of
the security assembly match.
"""

from golden_layer.conformance.entity import EntityDefinition, FieldSpec
from golden_layer.core.rules import NotNullRule, ReferenceExistsRule

from . import seed

STREAM = "src_ws_online_raw"
PIPELINE = "PL_MARKET_DAILY"

WS_ONLINE_SECURITY = EntityDefinition(
    entity_type="ws_online_security",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_WS_ONLINE,
    stream=STREAM,
    record_type="security",
    source_key=["wso_security_id"],
    columns=[
        FieldSpec(name="wso_security_id", kind="OPTIONAL_TEXT"),
        FieldSpec(name="security_type", kind="CODE"),
        FieldSpec(name="security_name"),
        FieldSpec(name="bank_loan_id", kind="OPTIONAL_TEXT"),
        FieldSpec(name="cusip", kind="OPTIONAL_TEXT"),
        FieldSpec(name="isin", kind="OPTIONAL_TEXT"),
        FieldSpec(name="ticker", kind="OPTIONAL_TEXT"),
        FieldSpec(name="exchange"),
        FieldSpec(name="currency", kind="CODE"),
        FieldSpec(name="status", source="wso_status", kind="CODE"),
        FieldSpec(name="last_updated", kind="DATETIME"),
    ],
    enterprise_key_fields=["wso_security_id"],
    hash_fields=[
        "security_type",
        "security_name",
        "bank_loan_id",
        "cusip",
        "isin",
        "ticker",
        "exchange",
        "currency",
        "status",
        "last_updated",
    ],
)

WS_ONLINE_PRICING = EntityDefinition(
    entity_type="ws_online_pricing",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_WS_ONLINE,
    stream=STREAM,
    record_type="pricing",
    source_key=["wso_security_id", "price_date"],
    columns=[
        FieldSpec(name="wso_security_id", kind="OPTIONAL_TEXT"),
        FieldSpec(name="price_date", kind="DATE"),
        FieldSpec(name="price_close", kind="DECIMAL", precision=18, scale=6),
        FieldSpec(name="price_open", kind="DECIMAL", precision=18, scale=6),
        FieldSpec(name="price_high", kind="DECIMAL", precision=18, scale=6),
        FieldSpec(name="price_low", kind="DECIMAL", precision=18, scale=6),
        FieldSpec(name="volume", kind="INTEGER"),
        FieldSpec(name="currency", kind="CODE"),
    ],
    enterprise_key_fields=["wso_security_id", "price_date"],
    hash_fields=["price_close", "price_open", "price_high", "price_low", "volume", "currency"],
    rules=[
        NotNullRule(rule_code="PRICE_DATE_VALID", field_name="price_date"),
        ReferenceExistsRule(
            rule_code="PRICE_WSO_SEC_EXISTS",
            field_name="wso_security_id",
            target_entity="ws_online_security",
        ),
    ],
)

DEFINITIONS = [WS_ONLINE_SECURITY, WS_ONLINE_PRICING]
