"""
Exception hierarchy for the conformance engine.

Validation and resolution failures are never raised: they become quarantine
rows. Everything here is either an infrastructure problem or a broken
invariant and aborts the current invocation.
"""


class GoldenLayerError(Exception):
    """Base class for all engine errors."""


class InvariantViolation(GoldenLayerError):
    """A data or lifecycle invariant did not hold. Always fatal."""


class RunLedgerError(InvariantViolation):
    """Raised when a pipeline run is sealed twice or does not exist."""


class QuarantineError(InvariantViolation):
    """Raised on an illegal quarantine lifecycle transition."""


class CrosswalkConfigError(GoldenLayerError):
    """Raised when crosswalk rules or paths are malformed."""


class StoreUnavailableError(GoldenLayerError):
    """Raised when a backing store cannot be reached or rejects a write."""


class OperationCancelled(GoldenLayerError):
    """Raised when a cancellation token fires at a stage or step boundary."""


class OrchestrationError(GoldenLayerError):
    """Raised for an invalid step graph or a failed orchestration run."""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report
