"""
Asset management entities.
"""

from golden_layer.conformance.entity import EntityDefinition, FieldSpec, KeyMapping
from golden_layer.core.rules import NotEmptyRule

from . import seed

ASSET = EntityDefinition(
    entity_type="asset",
    pipeline_code="PL_ASSET_DAILY",
    source_system_id=seed.SRC_ASSET_MGMT,
    stream="src_asset_mgmt_raw",
    source_key=["asset_id"],
    columns=[
        FieldSpec(name="asset_name"),
        FieldSpec(name="asset_short_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="asset_legal_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="asset_type", kind="CODE"),
        FieldSpec(name="asset_subtype", kind="CODE"),
        FieldSpec(name="asset_status", kind="CODE"),
        FieldSpec(name="location_country"),
        FieldSpec(name="location_region"),
        FieldSpec(name="acquisition_date", kind="DATE"),
        FieldSpec(name="last_valuation_date", kind="DATE"),
        FieldSpec(name="last_valuation_amount", kind="DECIMAL", precision=18, scale=2),
        FieldSpec(name="last_valuation_currency", kind="CODE"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="asset_enterprise_key",
            source_field="asset_id",
            from_space=seed.SAM_ASSET_ID,
            to_space=seed.ASSET_EK,
            rule_code="NOT_NULL_EK",
        ),
    ],
    enterprise_key_fields=["asset_enterprise_key"],
    hash_fields=[
        "asset_name",
        "asset_short_name",
        "asset_legal_name",
        "asset_type",
        "asset_subtype",
        "asset_status",
        "location_country",
        "location_region",
        "acquisition_date",
        "last_valuation_date",
        "last_valuation_amount",
        "last_valuation_currency",
    ],
    rules=[
        NotEmptyRule(rule_code="ASSET_NAME_NOT_EMPTY", field_name="asset_name"),
        NotEmptyRule(rule_code="ASSET_TYPE_NOT_EMPTY", field_name="asset_type"),
    ],
)

DEFINITIONS = [ASSET]
