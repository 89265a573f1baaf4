"""
Transaction management entities.
"""

from golden_layer.conformance.entity import EntityDefinition, FieldSpec, KeyMapping
from golden_layer.core.rules import AnyPresentRule, NotNullRule, ReferenceExistsRule

from . import seed

AMOUNT_FIELDS = ["transaction_amount_portfolio", "transaction_amount_local", "transaction_amount_usd"]

_REFERENCES = [
    # raw field, from space, to space, target field, referenced entity, rule code
    ("security_id", seed.STM_SECURITY_ID, seed.SECURITY_EK, "security_enterprise_key", "security", "TXN_SECURITY_EXISTS"),
    ("portfolio_id", seed.STM_PORTFOLIO_ID, seed.PORTFOLIO_EK, "portfolio_enterprise_key", "portfolio", "TXN_PORTFOLIO_EXISTS"),
    ("entity_id", seed.STM_ENTITY_ID, seed.ENTITY_EK, "entity_enterprise_key", "entity", "TXN_ENTITY_EXISTS"),
]

POSITION_TRANSACTION = EntityDefinition(
    entity_type="position_transaction",
    pipeline_code="PL_TXN_DAILY",
    source_system_id=seed.SRC_TXN_MGMT,
    stream="src_txn_mgmt_raw",
    source_key=["transaction_id"],
    columns=[
        FieldSpec(name="stm_transaction_id", source="transaction_id", kind="OPTIONAL_TEXT"),
        FieldSpec(name="as_of_date", kind="DATE"),
        FieldSpec(name="transaction_type", kind="CODE"),
        FieldSpec(name="transaction_category"),
        FieldSpec(name="transaction_status", kind="CODE"),
        FieldSpec(name="transaction_amount_portfolio", source="amount_portfolio", kind="DECIMAL", scale=4),
        FieldSpec(name="transaction_amount_local", source="amount_local", kind="DECIMAL", scale=4),
        FieldSpec(name="transaction_amount_usd", source="amount_usd", kind="DECIMAL", scale=4),
        FieldSpec(name="base_fx_rate", source="fx_rate", kind="DECIMAL", scale=8),
        FieldSpec(name="quantity", kind="DECIMAL", scale=6),
        FieldSpec(name="order_id"),
        FieldSpec(name="order_date", kind="DATE"),
        FieldSpec(name="order_status", kind="CODE"),
    ],
    key_mappings=[
        KeyMapping(target_field=target, source_field=raw, from_space=src, to_space=dst, rule_code=code)
        for raw, src, dst, target, _, code in _REFERENCES
    ],
    enterprise_key_fields=["stm_transaction_id"],
    hash_fields=[
        "as_of_date",
        "transaction_type",
        "transaction_category",
        "transaction_status",
        *AMOUNT_FIELDS,
        "base_fx_rate",
        "quantity",
        "order_id",
        "order_date",
        "order_status",
        *(target for _, _, _, target, _, _ in _REFERENCES),
    ],
    rules=[
        ReferenceExistsRule(rule_code=code, field_name=target, target_entity=referenced)
        for _, _, _, target, referenced, code in _REFERENCES
    ] + [
        AnyPresentRule(rule_code="TXN_AMOUNT_PRESENT", field_name=AMOUNT_FIELDS[0], fields=AMOUNT_FIELDS),
        NotNullRule(rule_code="TXN_DATE_VALID", field_name="as_of_date"),
        NotNullRule(rule_code="TXN_TYPE_NOT_NULL", field_name="transaction_type"),
        NotNullRule(rule_code="TXN_STATUS_NOT_NULL", field_name="transaction_status"),
    ],
)

DEFINITIONS = [POSITION_TRANSACTION]
