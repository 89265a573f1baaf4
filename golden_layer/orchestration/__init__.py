"""
Step orchestration and cooperative cancellation.
"""

from .cancellation import CancellationToken
from .orchestrator import (
    OrchestrationReport,
    Orchestrator,
    Step,
    StepOutcome,
    build_phases,
)

__all__ = [
    "CancellationToken",
    "Orchestrator",
    "OrchestrationReport",
    "Step",
    "StepOutcome",
    "build_phases",
]
