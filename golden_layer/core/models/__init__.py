"""
Core data models for the conformance engine.

All models use Pydantic for runtime validation and type safety.
"""

from .conformed_record import ConformedRecord, UpsertMode, UpsertResult
from .crosswalk import CrosswalkPath, CrosswalkRule, KeySpace, PrefixTransformation
from .pipeline_run import PipelineRun, RunCounts, RunOperation, RunStatus
from .quarantine_record import QuarantineRecord, QuarantineSummary, ResolutionStatus
from .raw_record import RawRecord
from .source_system import SourceSystem, SourceSystemRegistry

__all__ = [
    "RawRecord",
    "ConformedRecord",
    "UpsertMode",
    "UpsertResult",
    "QuarantineRecord",
    "QuarantineSummary",
    "ResolutionStatus",
    "KeySpace",
    "PrefixTransformation",
    "CrosswalkRule",
    "CrosswalkPath",
    "PipelineRun",
    "RunCounts",
    "RunOperation",
    "RunStatus",
    "SourceSystem",
    "SourceSystemRegistry",
]
