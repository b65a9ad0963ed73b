"""Prometheus metrics for pipeline runs."""

from prometheus_client import Counter, Gauge, Histogram

from savepipe.config import get_settings

# Pipeline metrics
PIPELINE_RUNS_TOTAL = Counter(
    "savepipe_pipeline_runs_total",
    "Total pipeline runs",
    ["pipeline_name", "status"],  # committed, rolled_back, prelude_failed, commit_failed
)

PIPELINE_DURATION_SECONDS = Histogram(
    "savepipe_pipeline_duration_seconds",
    "Pipeline run latency in seconds",
    ["pipeline_name"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

PIPELINE_ACTIVE = Gauge(
    "savepipe_pipeline_runs_active",
    "Number of currently active pipeline runs",
    ["pipeline_name"],
)

# Step metrics
STEP_EXECUTIONS_TOTAL = Counter(
    "savepipe_step_executions_total",
    "Total step executions",
    ["pipeline_name", "step_name", "status"],
)

# Transaction metrics
ROLLBACK_FAILURES_TOTAL = Counter(
    "savepipe_rollback_failures_total",
    "Rollbacks to the initial savepoint that themselves failed",
    ["pipeline_name"],
)


def _enabled() -> bool:
    return get_settings().prometheus_enabled


def record_active_run(pipeline_name: str, delta: int) -> None:
    """Move the active-runs gauge by delta (+1 on start, -1 on finish)."""
    if not _enabled():
        return
    PIPELINE_ACTIVE.labels(pipeline_name=pipeline_name).inc(delta)


def record_pipeline_run(
    pipeline_name: str,
    status: str,
    duration_seconds: float,
) -> None:
    """Record a pipeline run.

    Args:
        pipeline_name: Pipeline name
        status: Run outcome
        duration_seconds: Run duration in seconds
    """
    if not _enabled():
        return
    PIPELINE_RUNS_TOTAL.labels(
        pipeline_name=pipeline_name,
        status=status,
    ).inc()
    PIPELINE_DURATION_SECONDS.labels(
        pipeline_name=pipeline_name,
    ).observe(duration_seconds)


def record_step_execution(pipeline_name: str, step_name: str, status: str) -> None:
    """Record one step execution (status: success/failure)."""
    if not _enabled():
        return
    STEP_EXECUTIONS_TOTAL.labels(
        pipeline_name=pipeline_name,
        step_name=step_name,
        status=status,
    ).inc()


def record_rollback_failure(pipeline_name: str) -> None:
    if not _enabled():
        return
    ROLLBACK_FAILURES_TOTAL.labels(pipeline_name=pipeline_name).inc()
