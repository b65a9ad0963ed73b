"""OpenTelemetry tracing helpers.

Only the API package is used: spans are no-ops until the host process
installs a tracer provider.
"""

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from savepipe.config import get_settings


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance.

    Args:
        name: Tracer name (usually __name__)

    Returns:
        Tracer instance, versioned with the package version
    """
    return trace.get_tracer(name, get_settings().version)


@contextmanager
def create_span(
    name: str,
    attributes: dict[str, Any] | None = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
) -> Generator[Span, None, None]:
    """Create a traced span context manager.

    Args:
        name: Span name
        attributes: Span attributes
        kind: Span kind (INTERNAL, CLIENT, etc.)

    Yields:
        Active span
    """
    tracer = get_tracer(get_settings().otel_service_name)
    with tracer.start_as_current_span(name, kind=kind) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def get_current_trace_id() -> str | None:
    """Get the current trace ID as a hex string, or None outside a trace."""
    span = trace.get_current_span()
    ctx = span.get_span_context()
    if ctx.is_valid:
        return format(ctx.trace_id, "032x")
    return None
