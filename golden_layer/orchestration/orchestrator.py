"""
Dependency-ordered execution of conformance steps.

Steps declare the steps they depend on. The orchestrator layers them into
phases (every step's dependencies sit in earlier phases), runs the phases in
order and runs the steps of one phase sequentially or on a thread pool.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Literal

from pydantic import BaseModel, Field

from golden_layer.core.clock import utc_now
from golden_layer.core.exceptions import OperationCancelled, OrchestrationError
from golden_layer.core.models import PipelineRun, SourceSystemRegistry
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger

from .cancellation import CancellationToken

logger = get_logger(__name__)

FailurePolicy = Literal["FAIL_FAST", "ISOLATE"]
StepStatus = Literal["SUCCEEDED", "FAILED", "SKIPPED", "CANCELLED"]

# (batch_id, cancel_token) -> result
StepAction = Callable[[str | None, CancellationToken], Any]


class Step(BaseModel):
    """
    One unit of orchestrated work, usually a single entity pipeline.

    Attributes:
        name: Unique step name
        action: Callable receiving (batch_id, cancel_token)
        depends_on: Names of steps that must succeed first
        source_system_id: Owning source system; inactive systems skip the step
    """

    name: str = Field(..., min_length=1)
    action: StepAction
    depends_on: list[str] = Field(default_factory=list)
    source_system_id: int | None = None

    @classmethod
    def for_pipeline(cls, name: str, pipeline, depends_on: list[str] | None = None) -> "Step":
        """
        Wrap a conformance pipeline as a step.

        Args:
            name: Step name
            pipeline: EntityConformancePipeline (or assembler)
            depends_on: Upstream step names
        """
        return cls(
            name=name,
            action=lambda batch_id, token: pipeline.run(batch_id=batch_id, cancel_token=token),
            depends_on=depends_on or [],
            source_system_id=pipeline.definition.source_system_id,
        )


class StepOutcome(BaseModel):
    """Final state of one step in one orchestration run."""

    name: str
    phase: int
    status: StepStatus
    run: PipelineRun | None = None
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class OrchestrationReport(BaseModel):
    """Outcomes of every step, in phase order."""

    phases: list[list[str]]
    outcomes: list[StepOutcome]
    failure_policy: FailurePolicy
    started_at: datetime
    finished_at: datetime

    def outcome(self, name: str) -> StepOutcome | None:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None

    def names_with(self, status: StepStatus) -> list[str]:
        return [o.name for o in self.outcomes if o.status == status]

    @property
    def succeeded(self) -> bool:
        return not any(o.status in ("FAILED", "CANCELLED") for o in self.outcomes)

    def raise_for_status(self) -> None:
        """
        Raises:
            OrchestrationError: If any step failed or was cancelled
        """
        if self.succeeded:
            return
        failed = self.names_with("FAILED")
        cancelled = self.names_with("CANCELLED")
        parts = []
        if failed:
            parts.append(f"failed: {', '.join(failed)}")
        if cancelled:
            parts.append(f"cancelled: {', '.join(cancelled)}")
        raise OrchestrationError(f"Orchestration did not succeed ({'; '.join(parts)})", report=self)


def build_phases(steps: list[Step]) -> list[list[str]]:
    """
    Layer steps into phases with Kahn's algorithm.

    Steps keep their declaration order inside a phase.

    Raises:
        OrchestrationError: On duplicate names, unknown dependencies or cycles
    """
    names = [s.name for s in steps]
    if len(set(names)) != len(names):
        duplicates = sorted({n for n in names if names.count(n) > 1})
        raise OrchestrationError(f"Duplicate step names: {', '.join(duplicates)}")

    known = set(names)
    for step in steps:
        for dependency in step.depends_on:
            if dependency not in known:
                raise OrchestrationError(f"Step '{step.name}' depends on unknown step '{dependency}'")
            if dependency == step.name:
                raise OrchestrationError(f"Step '{step.name}' depends on itself")

    remaining = {s.name: set(s.depends_on) for s in steps}
    phases: list[list[str]] = []
    while remaining:
        ready = [n for n in names if n in remaining and not remaining[n]]
        if not ready:
            raise OrchestrationError(f"Dependency cycle among steps: {', '.join(sorted(remaining))}")
        phases.append(ready)
        for name in ready:
            del remaining[name]
        for pending in remaining.values():
            pending.difference_update(ready)
    return phases


class Orchestrator:
    """
    Runs steps phase by phase.

    FAIL_FAST: the first failure stops the steps of its phase that have not
    started yet and every later phase. ISOLATE: a failure only skips the
    steps that depend on the failed step, directly or transitively.
    Cancellation is checked before every step.
    """

    def __init__(
        self,
        steps: list[Step],
        failure_policy: FailurePolicy = "FAIL_FAST",
        max_workers: int = 1,
        source_registry: SourceSystemRegistry | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            steps: Steps to run
            failure_policy: FAIL_FAST or ISOLATE
            max_workers: Threads per phase; 1 runs steps sequentially
            source_registry: Registry used to skip steps of inactive systems

        Raises:
            OrchestrationError: If the step graph is invalid
        """
        if failure_policy not in ("FAIL_FAST", "ISOLATE"):
            raise OrchestrationError(f"Unknown failure policy {failure_policy}")
        if max_workers < 1:
            raise OrchestrationError(f"max_workers must be at least 1, got {max_workers}")

        self.steps = {s.name: s for s in steps}
        self.failure_policy = failure_policy
        self.max_workers = max_workers
        self.source_registry = source_registry
        self.phases = build_phases(steps)

    def run_all(self, batch_id: str | None = None, cancel_token: CancellationToken | None = None) -> OrchestrationReport:
        """
        Run every phase.

        Step failures never raise here; they are reported. Call
        ``raise_for_status`` on the report to turn them into an error.

        Args:
            batch_id: Passed to every step
            cancel_token: Cooperative cancellation

        Returns:
            OrchestrationReport with one outcome per step
        """
        token = cancel_token or CancellationToken()
        halt = threading.Event()
        blocked: set[str] = set()
        outcomes: dict[str, StepOutcome] = {}
        started_at = utc_now()

        for index, phase in enumerate(self.phases):
            logger.info(f"Phase {index + 1}/{len(self.phases)}: {', '.join(phase)}", extra={"phase": index + 1})

            runnable: list[Step] = []
            for name in phase:
                step = self.steps[name]
                skip_reason = self._skip_reason(step, blocked)
                if halt.is_set() or token.is_cancelled:
                    outcomes[name] = self._not_started(step, index, token)
                elif skip_reason is not None:
                    logger.info(f"Skipping {name}: {skip_reason}", extra={"step": name})
                    outcomes[name] = StepOutcome(name=name, phase=index, status="SKIPPED", error=skip_reason)
                else:
                    runnable.append(step)

            if self.max_workers == 1 or len(runnable) <= 1:
                for step in runnable:
                    outcomes[step.name] = self._execute(step, index, batch_id, token, halt)
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="golden-step") as pool:
                    futures = {
                        step.name: pool.submit(self._execute, step, index, batch_id, token, halt)
                        for step in runnable
                    }
                for name, future in futures.items():
                    outcomes[name] = future.result()

            for name in phase:
                if outcomes[name].status != "SUCCEEDED":
                    blocked.add(name)

        report = OrchestrationReport(
            phases=self.phases,
            outcomes=[outcomes[name] for phase in self.phases for name in phase],
            failure_policy=self.failure_policy,
            started_at=started_at,
            finished_at=utc_now(),
        )
        for outcome in report.outcomes:
            metrics.record_step_outcome(outcome.name, outcome.status)
        logger.info(
            f"Orchestration finished: {len(report.names_with('SUCCEEDED'))} succeeded, "
            f"{len(report.names_with('FAILED'))} failed, {len(report.names_with('SKIPPED'))} skipped, "
            f"{len(report.names_with('CANCELLED'))} cancelled"
        )
        return report

    def _skip_reason(self, step: Step, blocked: set[str]) -> str | None:
        for dependency in step.depends_on:
            if dependency in blocked:
                return f"dependency '{dependency}' did not succeed"
        if (
            self.source_registry is not None
            and step.source_system_id is not None
            and not self.source_registry.is_active(step.source_system_id)
        ):
            return f"source system {step.source_system_id} is inactive"
        return None

    def _not_started(self, step: Step, phase: int, token: CancellationToken) -> StepOutcome:
        if token.is_cancelled:
            return StepOutcome(name=step.name, phase=phase, status="CANCELLED", error=token.reason)
        return StepOutcome(name=step.name, phase=phase, status="SKIPPED", error="stopped after an earlier failure")

    def _execute(
        self,
        step: Step,
        phase: int,
        batch_id: str | None,
        token: CancellationToken,
        halt: threading.Event,
    ) -> StepOutcome:
        if halt.is_set() or token.is_cancelled:
            return self._not_started(step, phase, token)

        started_at = utc_now()
        try:
            with metrics.track_duration(metrics.step_duration_seconds, step=step.name):
                result = step.action(batch_id, token)
        except OperationCancelled as e:
            logger.warning(f"Step {step.name} cancelled: {e}", extra={"step": step.name})
            return StepOutcome(
                name=step.name, phase=phase, status="CANCELLED", error=str(e),
                started_at=started_at, finished_at=utc_now(),
            )
        except Exception as e:
            logger.error(f"Step {step.name} failed: {e}", extra={"step": step.name}, exc_info=True)
            if self.failure_policy == "FAIL_FAST":
                halt.set()
            return StepOutcome(
                name=step.name, phase=phase, status="FAILED", error=str(e) or type(e).__name__,
                started_at=started_at, finished_at=utc_now(),
            )

        return StepOutcome(
            name=step.name,
            phase=phase,
            status="SUCCEEDED",
            run=result if isinstance(result, PipelineRun) else None,
            started_at=started_at,
            finished_at=utc_now(),
        )
