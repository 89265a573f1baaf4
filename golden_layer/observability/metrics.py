"""
Prometheus metrics collection for golden-layer

Counters and histograms for conformance runs, quarantine volume, write
outcomes, security matching, orchestration and crosswalk lookups. All metrics
live on a dedicated registry so tests and embedding applications do not
collide with the default one.
"""
import os
import time
from contextlib import contextmanager

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()


# =======================
# PIPELINE METRICS
# =======================

records_read_total = Counter(
    name="golden_records_read_total",
    documentation="Raw records read after staging and deduplication",
    labelnames=["entity"],
    registry=REGISTRY,
)

rows_written_total = Counter(
    name="golden_rows_written_total",
    documentation="Conformed rows by upsert outcome",
    labelnames=["entity", "outcome"],  # outcome: inserted, updated, unchanged, deleted
    registry=REGISTRY,
)

pipeline_runs_total = Counter(
    name="golden_pipeline_runs_total",
    documentation="Sealed pipeline runs",
    labelnames=["pipeline", "entity", "status"],
    registry=REGISTRY,
)

pipeline_duration_seconds = Histogram(
    name="golden_pipeline_duration_seconds",
    documentation="Wall-clock duration of sealed pipeline runs",
    labelnames=["entity"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

records_quarantined_total = Counter(
    name="golden_records_quarantined_total",
    documentation="Quarantine entries written, one per failed rule",
    labelnames=["entity", "rule"],
    registry=REGISTRY,
)

rule_warnings_total = Counter(
    name="golden_rule_warnings_total",
    documentation="EXPECT_OR_WARN rule failures (record kept)",
    labelnames=["entity", "rule"],
    registry=REGISTRY,
)

pending_quarantine = Gauge(
    name="golden_pending_quarantine",
    documentation="Quarantine entries awaiting resolution",
    labelnames=["entity"],
    registry=REGISTRY,
)

# =======================
# RESOLUTION METRICS
# =======================

match_outcomes_total = Counter(
    name="golden_match_outcomes_total",
    documentation="Composite entity match outcomes",
    labelnames=["status", "match_key"],
    registry=REGISTRY,
)

crosswalk_lookups_total = Counter(
    name="golden_crosswalk_lookups_total",
    documentation="Crosswalk translations by outcome",
    labelnames=["outcome"],  # outcome: direct, path, malformed, unresolved
    registry=REGISTRY,
)

# =======================
# ORCHESTRATION METRICS
# =======================

orchestration_steps_total = Counter(
    name="golden_orchestration_steps_total",
    documentation="Orchestrated steps by final status",
    labelnames=["step", "status"],
    registry=REGISTRY,
)

step_duration_seconds = Histogram(
    name="golden_step_duration_seconds",
    documentation="Wall-clock duration of orchestrated steps, whatever their outcome",
    labelnames=["step"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: int | None = None) -> None:
    """
    Serve the registry over HTTP for Prometheus scraping

    Args:
        port: Port to listen on (METRICS_PORT, then 8000)
    """
    # Imported here so that importing metrics never binds a port
    from prometheus_client import start_http_server

    start_http_server(port or int(os.getenv("METRICS_PORT", "8000")), registry=REGISTRY)


@contextmanager
def track_duration(histogram: Histogram, **labels):
    """
    Observe the duration of the block, also when it raises

    Usage:
        with track_duration(step_duration_seconds, step="asset"):
            ...
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - started)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    gauge.labels(**labels).set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    histogram.labels(**labels).observe(value)


# =======================
# DOMAIN HELPERS
# =======================

def record_pipeline_run(run) -> None:
    """
    Record the counters of a sealed pipeline run.

    Args:
        run: Sealed PipelineRun
    """
    entity = run.target_entity
    increment_counter(pipeline_runs_total, 1, pipeline=run.pipeline_code, entity=entity, status=run.status)
    increment_counter(records_read_total, run.rows_read, entity=entity)
    for outcome in ("inserted", "updated", "unchanged", "deleted"):
        count = getattr(run, f"rows_{outcome}")
        if count:
            increment_counter(rows_written_total, count, entity=entity, outcome=outcome)
    duration = run.duration_seconds
    if duration is not None:
        observe_histogram(pipeline_duration_seconds, duration, entity=entity)


def record_quarantine(entity: str, rule: str, count: int = 1) -> None:
    increment_counter(records_quarantined_total, count, entity=entity, rule=rule)


def record_rule_warning(entity: str, rule: str) -> None:
    increment_counter(rule_warnings_total, 1, entity=entity, rule=rule)


def record_match(status: str, match_key: str | None) -> None:
    increment_counter(match_outcomes_total, 1, status=status, match_key=match_key or "NONE")


def record_crosswalk_lookup(outcome: str) -> None:
    increment_counter(crosswalk_lookups_total, 1, outcome=outcome)


def record_step_outcome(step: str, status: str) -> None:
    increment_counter(orchestration_steps_total, 1, step=step, status=status)


def record_pending_quarantine(summary) -> None:
    """
    Set the pending gauge from a quarantine summary.

    Args:
        summary: QuarantineSummary rows
    """
    pending: dict[str, int] = {}
    for row in summary:
        pending.setdefault(row.target_entity, 0)
        if row.resolution_status == "PENDING":
            pending[row.target_entity] += row.row_count
    for entity, count in pending.items():
        set_gauge(pending_quarantine, count, entity=entity)
