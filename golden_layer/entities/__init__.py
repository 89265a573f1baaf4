"""
Entity definitions for the conformed entity types and the governance seed.
"""

from .registry import (
    ALL_DEFINITIONS,
    DEFINITIONS_BY_TYPE,
    STEP_DEPENDENCIES,
    Governance,
    build_orchestrator,
    build_orchestrator_from_settings,
    build_pipeline,
    load_governance,
    seed_governance,
)

__all__ = [
    "ALL_DEFINITIONS",
    "DEFINITIONS_BY_TYPE",
    "STEP_DEPENDENCIES",
    "Governance",
    "build_orchestrator",
    "build_orchestrator_from_settings",
    "build_pipeline",
    "load_governance",
    "seed_governance",
]
