"""
Wiring of the eleven conformed entity types into one orchestrated run.

Coordinates: governance (crosswalk, rule catalog, source systems) →
pipelines → dependency-ordered steps → orchestrator
"""

from typing import NamedTuple

from golden_layer.conformance.assembler import CompositeEntityAssembler
from golden_layer.conformance.entity import EntityDefinition
from golden_layer.conformance.pipeline import EntityConformancePipeline
from golden_layer.conformance.quarantine import QuarantineSink
from golden_layer.conformance.run_ledger import RunLedger
from golden_layer.core.crosswalk import DEFAULT_MAX_HOPS, CrosswalkConfigLoader, CrosswalkGraph
from golden_layer.core.models import SourceSystemRegistry
from golden_layer.core.rules import RuleCatalog, RuleConfigLoader
from golden_layer.observability.logger import configure_logging, get_logger, log_operation
from golden_layer.orchestration import Orchestrator, Step
from golden_layer.orchestration.orchestrator import FailurePolicy
from golden_layer.settings import Settings
from golden_layer.warehouse.stores import ConformedStore, QuarantineStore, RawRecordSource, RunLedgerStore

from . import asset_mgmt, enterprise, entity_mgmt, market, seed, security, transactions

logger = get_logger(__name__)

ALL_DEFINITIONS: list[EntityDefinition] = (
    enterprise.DEFINITIONS
    + entity_mgmt.DEFINITIONS
    + asset_mgmt.DEFINITIONS
    + market.DEFINITIONS
    + security.DEFINITIONS
    + transactions.DEFINITIONS
)

DEFINITIONS_BY_TYPE = {d.entity_type: d for d in ALL_DEFINITIONS}

# Conformed entity -> entities whose conformed rows it references
STEP_DEPENDENCIES: dict[str, list[str]] = {
    "investment_team": [],
    "portfolio_group": ["investment_team"],
    "portfolio": ["portfolio_group"],
    "entity": [],
    "asset": [],
    "ws_online_security": [],
    "ws_online_pricing": ["ws_online_security"],
    "portfolio_entity_ownership": ["portfolio", "entity"],
    "entity_asset_ownership": ["entity", "asset"],
    "security": ["investment_team", "entity", "asset", "ws_online_security"],
    "position_transaction": ["portfolio", "entity", "security"],
}

COMPOSITE_ENTITIES = {"security"}


class Governance(NamedTuple):
    """Read-only governance inputs shared by every pipeline."""

    graph: CrosswalkGraph
    catalog: RuleCatalog
    source_registry: SourceSystemRegistry


def seed_governance(max_hops: int = DEFAULT_MAX_HOPS) -> Governance:
    return Governance(seed.crosswalk_graph(max_hops), seed.rule_catalog(), seed.source_registry())


def load_governance(settings: Settings) -> Governance:
    """
    Load governance from the YAML files in the settings' config directory.

    A missing file falls back to the built-in seed with a warning; a
    malformed file raises.
    """
    with log_operation("Loading governance", logger=logger, config_dir=str(settings.config_dir)) as context:
        if settings.crosswalk_config.exists():
            graph = CrosswalkConfigLoader(settings.crosswalk_config).load_graph(settings.crosswalk_max_hops)
        else:
            logger.warning(f"Crosswalk config not found: {settings.crosswalk_config}, using seed")
            graph = seed.crosswalk_graph(settings.crosswalk_max_hops)

        if settings.quality_rules_config.exists():
            catalog = RuleConfigLoader(settings.quality_rules_config).load_catalog()
        else:
            logger.warning(f"Quality rule config not found: {settings.quality_rules_config}, using seed")
            catalog = seed.rule_catalog()

        if settings.source_systems_config.exists():
            registry = SourceSystemRegistry.from_yaml(settings.source_systems_config)
        else:
            logger.warning(f"Source system config not found: {settings.source_systems_config}, using seed")
            registry = seed.source_registry()

        context["crosswalk_rules"] = len(graph.rules)
        context["quality_rules"] = len(catalog.definitions)

    return Governance(graph, catalog, registry)


def build_pipeline(
    definition: EntityDefinition,
    raw_source: RawRecordSource,
    conformed_store: ConformedStore,
    quarantine_sink: QuarantineSink,
    run_ledger: RunLedger,
    governance: Governance,
    conformed_by: str = "golden_layer",
) -> EntityConformancePipeline:
    """Plain pipeline for simple entities, the assembler for composite ones."""
    pipeline_cls = (
        CompositeEntityAssembler if definition.entity_type in COMPOSITE_ENTITIES else EntityConformancePipeline
    )
    return pipeline_cls(
        definition,
        raw_source,
        conformed_store,
        quarantine_sink,
        run_ledger,
        governance.graph,
        catalog=governance.catalog,
        conformed_by=conformed_by,
    )


def build_orchestrator(
    raw_source: RawRecordSource,
    conformed_store: ConformedStore,
    quarantine_store: QuarantineStore,
    run_ledger_store: RunLedgerStore,
    governance: Governance | None = None,
    failure_policy: FailurePolicy = "FAIL_FAST",
    max_workers: int = 1,
    conformed_by: str = "golden_layer",
    entity_types: list[str] | None = None,
) -> Orchestrator:
    """
    Build the orchestrator over every conformed entity type.

    Args:
        raw_source: Landed raw records
        conformed_store: Conformed records
        quarantine_store: Quarantine rows
        run_ledger_store: Run ledger rows
        governance: Crosswalk, catalog and registry; the seed when None
        failure_policy: FAIL_FAST or ISOLATE
        max_workers: Threads per phase
        conformed_by: Actor recorded on runs, records and quarantine rows
        entity_types: Restrict to these entity types (their dependencies
            must be included too)

    Returns:
        Orchestrator with one step per entity type
    """
    governance = governance or seed_governance()
    sink = QuarantineSink(quarantine_store, quarantined_by=conformed_by)
    ledger = RunLedger(run_ledger_store, executed_by=conformed_by)

    selected = entity_types or list(STEP_DEPENDENCIES)
    steps = []
    for entity_type in selected:
        definition = DEFINITIONS_BY_TYPE[entity_type]
        pipeline = build_pipeline(
            definition, raw_source, conformed_store, sink, ledger, governance, conformed_by=conformed_by
        )
        steps.append(Step.for_pipeline(entity_type, pipeline, depends_on=STEP_DEPENDENCIES[entity_type]))

    return Orchestrator(
        steps,
        failure_policy=failure_policy,
        max_workers=max_workers,
        source_registry=governance.source_registry,
    )


def build_orchestrator_from_settings(
    settings: Settings,
    raw_source: RawRecordSource,
    conformed_store: ConformedStore,
    quarantine_store: QuarantineStore,
    run_ledger_store: RunLedgerStore,
) -> Orchestrator:
    """Orchestrator configured from settings and the YAML governance files."""
    configure_logging(settings)
    return build_orchestrator(
        raw_source,
        conformed_store,
        quarantine_store,
        run_ledger_store,
        governance=load_governance(settings),
        failure_policy=settings.orchestrator_failure_policy,
        max_workers=settings.orchestrator_max_workers,
        conformed_by=settings.conformed_by,
    )
