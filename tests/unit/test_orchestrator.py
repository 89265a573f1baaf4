"""
Unit tests for dependency-ordered orchestration.
"""

import threading

import pytest

from golden_layer.core.exceptions import OperationCancelled, OrchestrationError
from golden_layer.core.models import SourceSystem, SourceSystemRegistry
from golden_layer.orchestration import CancellationToken, Orchestrator, Step, build_phases


def _step(name, depends_on=(), action=None, calls=None, source_system_id=None):
    def _record(batch_id, token):
        if calls is not None:
            calls.append(name)
        return None

    return Step(
        name=name,
        action=action or _record,
        depends_on=list(depends_on),
        source_system_id=source_system_id,
    )


def _fail(batch_id, token):
    raise RuntimeError("boom")


@pytest.mark.unit
class TestBuildPhases:
    """Tests for layering steps into phases"""

    def test_phases_follow_dependencies(self):
        steps = [
            _step("portfolio", ["portfolio_group"]),
            _step("investment_team"),
            _step("portfolio_group", ["investment_team"]),
            _step("entity"),
            _step("portfolio_entity_ownership", ["portfolio", "entity"]),
        ]

        assert build_phases(steps) == [
            ["investment_team", "entity"],
            ["portfolio_group"],
            ["portfolio"],
            ["portfolio_entity_ownership"],
        ]

    def test_cycle(self):
        with pytest.raises(OrchestrationError, match="cycle"):
            build_phases([_step("a", ["b"]), _step("b", ["a"]), _step("c")])

    def test_unknown_dependency(self):
        with pytest.raises(OrchestrationError, match="unknown step 'missing'"):
            build_phases([_step("a", ["missing"])])

    def test_self_dependency(self):
        with pytest.raises(OrchestrationError, match="itself"):
            build_phases([_step("a", ["a"])])

    def test_duplicate_names(self):
        with pytest.raises(OrchestrationError, match="Duplicate"):
            build_phases([_step("a"), _step("a")])


@pytest.mark.unit
class TestOrchestrator:
    """Tests for running phases"""

    def test_runs_in_dependency_order(self):
        calls = []
        orchestrator = Orchestrator([
            _step("c", ["b"], calls=calls),
            _step("b", ["a"], calls=calls),
            _step("a", calls=calls),
        ])

        report = orchestrator.run_all(batch_id="BATCH-001")

        assert calls == ["a", "b", "c"]
        assert report.succeeded
        assert report.phases == [["a"], ["b"], ["c"]]
        assert [o.phase for o in report.outcomes] == [0, 1, 2]
        report.raise_for_status()

    def test_batch_id_passed_through(self):
        seen = []
        orchestrator = Orchestrator([_step("a", action=lambda batch_id, token: seen.append(batch_id))])

        orchestrator.run_all(batch_id="BATCH-007")

        assert seen == ["BATCH-007"]

    def test_fail_fast_stops_later_work(self):
        calls = []
        orchestrator = Orchestrator([
            _step("a", action=_fail),
            _step("b", calls=calls),
            _step("c", ["b"], calls=calls),
        ])

        report = orchestrator.run_all()

        assert report.outcome("a").status == "FAILED"
        assert report.outcome("a").error == "boom"
        assert report.outcome("b").status == "SKIPPED"
        assert report.outcome("c").error == "stopped after an earlier failure"
        assert calls == []
        assert not report.succeeded

    def test_isolate_skips_only_dependents(self):
        calls = []
        orchestrator = Orchestrator(
            [
                _step("a", action=_fail),
                _step("b", calls=calls),
                _step("c", ["a"], calls=calls),
                _step("d", ["c"], calls=calls),
                _step("e", ["b"], calls=calls),
            ],
            failure_policy="ISOLATE",
        )

        report = orchestrator.run_all()

        assert calls == ["b", "e"]
        assert report.outcome("c").status == "SKIPPED"
        assert report.outcome("c").error == "dependency 'a' did not succeed"
        assert report.outcome("d").error == "dependency 'c' did not succeed"
        assert report.names_with("SUCCEEDED") == ["b", "e"]

        with pytest.raises(OrchestrationError, match="failed: a") as exc_info:
            report.raise_for_status()
        assert exc_info.value.report is report

    def test_inactive_source_skipped(self):
        registry = SourceSystemRegistry([
            SourceSystem(source_system_id=6, system_code="SRC_WS_ONLINE", system_name="WSO",
                         system_type="MARKET_DATA", is_active=False),
        ])
        calls = []
        orchestrator = Orchestrator(
            [
                _step("ws_online_security", calls=calls, source_system_id=6),
                _step("ws_online_pricing", ["ws_online_security"], calls=calls, source_system_id=6),
                _step("asset", calls=calls, source_system_id=3),
            ],
            source_registry=registry,
        )

        report = orchestrator.run_all()

        assert calls == ["asset"]
        assert report.outcome("ws_online_security").error == "source system 6 is inactive"
        assert report.outcome("ws_online_pricing").status == "SKIPPED"
        assert report.succeeded

    def test_cancelled_before_run(self):
        calls = []
        token = CancellationToken()
        token.cancel("operator stop")

        report = Orchestrator([_step("a", calls=calls), _step("b", ["a"], calls=calls)]).run_all(cancel_token=token)

        assert calls == []
        assert report.names_with("CANCELLED") == ["a", "b"]
        assert report.outcome("a").error == "operator stop"

    def test_cancelled_mid_run(self):
        token = CancellationToken()

        def cancel_then_raise(batch_id, tok):
            tok.cancel("shutdown")
            tok.raise_if_cancelled("a upsert")

        report = Orchestrator([
            _step("a", action=cancel_then_raise),
            _step("b", ["a"]),
        ]).run_all(cancel_token=token)

        assert report.outcome("a").status == "CANCELLED"
        assert report.outcome("b").status == "CANCELLED"
        with pytest.raises(OrchestrationError, match="cancelled: a, b"):
            report.raise_for_status()

    def test_parallel_phase(self):
        barrier = threading.Barrier(3, timeout=5)

        def wait(batch_id, token):
            barrier.wait()

        orchestrator = Orchestrator([_step(n, action=wait) for n in ("a", "b", "c")], max_workers=3)

        report = orchestrator.run_all()

        assert report.names_with("SUCCEEDED") == ["a", "b", "c"]

    def test_invalid_configuration(self):
        with pytest.raises(OrchestrationError):
            Orchestrator([_step("a")], failure_policy="RETRY")
        with pytest.raises(OrchestrationError):
            Orchestrator([_step("a")], max_workers=0)


@pytest.mark.unit
class TestCancellationToken:
    """Tests for CancellationToken"""

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled("stage")

        token.cancel("shutdown")

        assert token.is_cancelled
        assert token.reason == "shutdown"
        with pytest.raises(OperationCancelled, match="before stage: shutdown"):
            token.raise_if_cancelled("stage")
