"""
Run ledger: one sealed record per pipeline invocation.
"""

import uuid

from golden_layer.core.clock import utc_now
from golden_layer.core.exceptions import RunLedgerError
from golden_layer.core.models import PipelineRun, RunCounts, RunOperation, RunStatus
from golden_layer.observability import metrics
from golden_layer.observability.logger import get_logger
from golden_layer.warehouse.stores import RunLedgerStore

logger = get_logger(__name__)

_TERMINAL: frozenset[str] = frozenset({"SUCCEEDED", "FAILED"})


class RunLedger:
    """
    Creates runs in RUNNING state and seals each exactly once.

    A run that is never sealed (process killed) stays RUNNING with its start
    time, which is what ``running_runs`` exposes to a staleness sweep.
    """

    def __init__(self, store: RunLedgerStore, executed_by: str = "golden_layer"):
        self.store = store
        self.executed_by = executed_by

    def start(
        self,
        pipeline_name: str,
        target_entity: str,
        operation: RunOperation = "MERGE",
        batch_id: str | None = None,
    ) -> str:
        """
        Open a run.

        Args:
            pipeline_name: Pipeline code (e.g. "PL_ENTERPRISE_DAILY")
            target_entity: Entity type being written
            operation: MERGE or REBUILD
            batch_id: Raw batch scope, None for all batches

        Returns:
            The new run id
        """
        run = PipelineRun(
            run_id=str(uuid.uuid4()),
            pipeline_code=pipeline_name,
            target_entity=target_entity,
            operation=operation,
            batch_id=batch_id,
            start_time=utc_now(),
            executed_by=self.executed_by,
        )
        self.store.insert(run)
        logger.info(
            f"Run started: {pipeline_name}/{target_entity}",
            extra={"run_id": run.run_id, "pipeline": pipeline_name, "entity": target_entity},
        )
        return run.run_id

    def complete(
        self,
        run_id: str,
        status: RunStatus,
        counts: RunCounts | None = None,
        error: str | None = None,
    ) -> PipelineRun:
        """
        Seal a run.

        Args:
            run_id: Run to seal
            status: SUCCEEDED or FAILED
            counts: Row counters, zero when omitted
            error: Failure detail for FAILED runs

        Returns:
            The sealed run

        Raises:
            RunLedgerError: If the status is not terminal, or the run is
                unknown or already sealed
        """
        if status not in _TERMINAL:
            raise RunLedgerError(f"Cannot seal run {run_id} with non-terminal status {status}")

        run = self.store.seal(run_id, status, counts or RunCounts(), error, utc_now())
        metrics.record_pipeline_run(run)

        extra = {"run_id": run_id, "entity": run.target_entity, "status": status, **run.counts.model_dump()}
        if status == "SUCCEEDED":
            logger.info(f"Run succeeded: {run.pipeline_code}/{run.target_entity}", extra=extra)
        else:
            logger.error(f"Run failed: {run.pipeline_code}/{run.target_entity}: {error}", extra=extra)
        return run

    def get(self, run_id: str) -> PipelineRun | None:
        return self.store.get(run_id)

    def recent_runs(self, limit: int = 50) -> list[PipelineRun]:
        return self.store.recent(limit)

    def running_runs(self) -> list[PipelineRun]:
        return self.store.running()
