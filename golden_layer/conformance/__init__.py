"""
Metadata-driven conformance: entity definitions, pipeline, composite
assembler, quarantine sink and run ledger.
"""

from .assembler import CompositeEntityAssembler, MatchCandidate, collapse_candidates
from .entity import EntityDefinition, FieldSpec, KeyMapping, StagedRow
from .pipeline import EntityConformancePipeline
from .quarantine import QuarantineSink
from .run_ledger import RunLedger

__all__ = [
    "EntityDefinition",
    "FieldSpec",
    "KeyMapping",
    "StagedRow",
    "EntityConformancePipeline",
    "CompositeEntityAssembler",
    "MatchCandidate",
    "collapse_candidates",
    "QuarantineSink",
    "RunLedger",
]
