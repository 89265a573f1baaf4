"""
Unit tests for the run ledger.
"""

import pytest

from golden_layer.core.exceptions import InvariantViolation, RunLedgerError
from golden_layer.core.models import RunCounts
from golden_layer.observability import metrics


@pytest.mark.unit
class TestRunLedger:
    """Tests for RunLedger lifecycle"""

    def test_start_creates_running_run(self, run_ledger):
        run_id = run_ledger.start("PL_ENTERPRISE_DAILY", "investment_team", batch_id="BATCH-001")

        run = run_ledger.get(run_id)
        assert run.status == "RUNNING"
        assert run.batch_id == "BATCH-001"
        assert run.operation == "MERGE"
        assert run.executed_by == "test"
        assert run_ledger.running_runs() == [run]

    def test_complete_seals_with_counts(self, run_ledger):
        before = metrics.REGISTRY.get_sample_value(
            "golden_pipeline_runs_total",
            {"pipeline": "PL_ENTERPRISE_DAILY", "entity": "investment_team", "status": "SUCCEEDED"},
        ) or 0
        run_id = run_ledger.start("PL_ENTERPRISE_DAILY", "investment_team")

        run = run_ledger.complete(run_id, "SUCCEEDED", RunCounts(read=3, inserted=2, quarantined=1))

        assert run.status == "SUCCEEDED"
        assert (run.rows_read, run.rows_inserted, run.rows_quarantined) == (3, 2, 1)
        assert run.end_time >= run.start_time
        assert run_ledger.running_runs() == []
        assert metrics.REGISTRY.get_sample_value(
            "golden_pipeline_runs_total",
            {"pipeline": "PL_ENTERPRISE_DAILY", "entity": "investment_team", "status": "SUCCEEDED"},
        ) == before + 1

    def test_failed_run_keeps_error(self, run_ledger):
        run_id = run_ledger.start("PL_ASSET_DAILY", "asset")

        run = run_ledger.complete(run_id, "FAILED", error="store unavailable")

        assert run.error_message == "store unavailable"
        assert run.counts == RunCounts()

    def test_double_seal_rejected(self, run_ledger):
        run_id = run_ledger.start("PL_ASSET_DAILY", "asset")
        run_ledger.complete(run_id, "SUCCEEDED")

        with pytest.raises(RunLedgerError, match="already sealed"):
            run_ledger.complete(run_id, "FAILED", error="late")
        assert run_ledger.get(run_id).status == "SUCCEEDED"

    def test_non_terminal_status_rejected(self, run_ledger):
        run_id = run_ledger.start("PL_ASSET_DAILY", "asset")
        with pytest.raises(RunLedgerError):
            run_ledger.complete(run_id, "RUNNING")

    def test_unknown_run(self, run_ledger):
        with pytest.raises(InvariantViolation):
            run_ledger.complete("nope", "SUCCEEDED")

    def test_recent_runs_newest_first(self, run_ledger):
        ids = [run_ledger.start("PL_ASSET_DAILY", "asset") for _ in range(3)]

        recent = run_ledger.recent_runs(limit=2)

        assert len(recent) == 2
        assert recent[0].start_time >= recent[1].start_time
        assert {r.run_id for r in run_ledger.recent_runs()} == set(ids)
