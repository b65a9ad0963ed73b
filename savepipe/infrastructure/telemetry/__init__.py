"""Telemetry infrastructure (logging, tracing, metrics)."""

from savepipe.infrastructure.telemetry.logging import (
    ContextLogger,
    reset_pipeline_context,
    configure_logging,
    get_logger,
    pipeline_name_var,
    pipeline_run_id_var,
    set_pipeline_context,
)
from savepipe.infrastructure.telemetry.metrics import (
    record_active_run,
    record_pipeline_run,
    record_rollback_failure,
    record_step_execution,
)
from savepipe.infrastructure.telemetry.tracing import (
    create_span,
    get_current_trace_id,
    get_tracer,
)

__all__ = [
    # Logging
    "ContextLogger",
    "configure_logging",
    "get_logger",
    "set_pipeline_context",
    "reset_pipeline_context",
    "pipeline_run_id_var",
    "pipeline_name_var",
    # Tracing
    "get_tracer",
    "create_span",
    "get_current_trace_id",
    # Metrics
    "record_active_run",
    "record_pipeline_run",
    "record_step_execution",
    "record_rollback_failure",
]
