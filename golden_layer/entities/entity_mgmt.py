"""
Entity management entities: legal entities and the two ownership relations.
"""

from golden_layer.conformance.entity import EntityDefinition, FieldSpec, KeyMapping
from golden_layer.core.rules import NotEmptyRule, NotNullRule, RangeRule, ReferenceExistsRule

from . import seed

STREAM = "src_entity_mgmt_raw"
PIPELINE = "PL_ENTITY_DAILY"

ENTITY = EntityDefinition(
    entity_type="entity",
    pipeline_code=PIPELINE,
    source_system_id=seed.SRC_ENTITY_MGMT,
    stream=STREAM,
    record_type="entity",
    source_key=["entity_id"],
    columns=[
        FieldSpec(name="entity_name"),
        FieldSpec(name="entity_short_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="entity_legal_name", kind="OPTIONAL_TEXT"),
        FieldSpec(name="entity_type", kind="CODE"),
        FieldSpec(name="entity_status", kind="CODE"),
        FieldSpec(name="incorporation_jurisdiction"),
        FieldSpec(name="incorporation_date", kind="DATE"),
    ],
    key_mappings=[
        KeyMapping(
            target_field="entity_enterprise_key",
            source_field="entity_id",
            from_space=seed.SEM_ENTITY_ID,
            to_space=seed.ENTITY_EK,
            rule_code="NOT_NULL_EK",
        ),
    ],
    enterprise_key_fields=["entity_enterprise_key"],
    hash_fields=[
        "entity_name",
        "entity_short_name",
        "entity_legal_name",
        "entity_type",
        "entity_status",
        "incorporation_jurisdiction",
        "incorporation_date",
    ],
    rules=[NotEmptyRule(rule_code="ENTITY_NAME_NOT_EMPTY", field_name="entity_name")],
)


def _ownership(
    entity_type: str,
    prefix: str,
    owner: tuple[str, str, str, str, str],
    owned: tuple[str, str, str, str, str],
) -> EntityDefinition:
    """
    Build an ownership relation keyed by (owner, owned, effective_date).

    ``owner`` and ``owned`` are (raw field, from space, to space, target
    field, referenced entity type).
    """
    mappings = []
    rules = []
    for raw_field, from_space, to_space, target_field, referenced in (owner, owned):
        rule_code = f"{prefix}_{referenced.upper()}_EXISTS"
        mappings.append(KeyMapping(
            target_field=target_field,
            source_field=raw_field,
            from_space=from_space,
            to_space=to_space,
            rule_code=rule_code,
        ))
        rules.append(ReferenceExistsRule(rule_code=rule_code, field_name=target_field, target_entity=referenced))

    rules.append(RangeRule(
        rule_code=f"{prefix}_PCT_RANGE",
        field_name="ownership_pct",
        min_value=0,
        max_value=1,
        min_inclusive=False,
    ))
    rules.append(NotNullRule(rule_code=f"{prefix}_EFFECTIVE_DATE_VALID", field_name="effective_date"))

    return EntityDefinition(
        entity_type=entity_type,
        pipeline_code=PIPELINE,
        source_system_id=seed.SRC_ENTITY_MGMT,
        stream=STREAM,
        record_type=entity_type,
        source_key=[owner[0], owned[0], "effective_date"],
        columns=[
            FieldSpec(name="ownership_pct", kind="DECIMAL", precision=5, scale=4),
            FieldSpec(name="effective_date", kind="DATE"),
            FieldSpec(name="end_date", kind="DATE"),
            FieldSpec(name="source_ownership_id", source="ownership_id", kind="OPTIONAL_TEXT"),
        ],
        key_mappings=mappings,
        enterprise_key_fields=[owner[3], owned[3], "effective_date"],
        hash_fields=["ownership_pct", "end_date", "source_ownership_id"],
        rules=rules,
    )


PORTFOLIO_ENTITY_OWNERSHIP = _ownership(
    "portfolio_entity_ownership",
    "PE",
    ("portfolio_ref", seed.SEM_PORTFOLIO_REF_ID, seed.PORTFOLIO_EK, "portfolio_enterprise_key", "portfolio"),
    ("entity_ref", seed.SEM_ENTITY_ID, seed.ENTITY_EK, "entity_enterprise_key", "entity"),
)

ENTITY_ASSET_OWNERSHIP = _ownership(
    "entity_asset_ownership",
    "EA",
    ("entity_ref", seed.SEM_ENTITY_ID, seed.ENTITY_EK, "entity_enterprise_key", "entity"),
    ("asset_ref", seed.SEM_ASSET_REF_ID, seed.ASSET_EK, "asset_enterprise_key", "asset"),
)

DEFINITIONS = [ENTITY, PORTFOLIO_ENTITY_OWNERSHIP, ENTITY_ASSET_OWNERSHIP]
