"""
Observability utilities for requestworker.

Tracing and standard span attributes. OpenTelemetry is an optional
dependency; every utility here degrades to a no-op without it.

Example:
    >>> from requestworker.observability import create_tracer
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.invocation_span(descriptor, metadata):
    ...     pass
"""

from requestworker.observability.attributes import (
    ATTR_ACKNOWLEDGED,
    ATTR_ERROR_TYPE,
    ATTR_HANDLER_ASYNC,
    ATTR_HANDLER_NAME,
    ATTR_MESSAGE_ID,
    ATTR_MESSAGE_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_MESSAGE_ID,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_OUTCOME,
    ATTR_QUEUE_NAME,
)
from requestworker.observability.tracer import (
    CONSUME_SPAN,
    INVOCATION_SPAN,
    OTEL_AVAILABLE,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    RecordingTracer,
    Tracer,
    consume_attributes,
    create_tracer,
    invocation_attributes,
    should_trace,
)

__all__ = [
    "OTEL_AVAILABLE",
    "INVOCATION_SPAN",
    "CONSUME_SPAN",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordingTracer",
    "RecordedSpan",
    "invocation_attributes",
    "consume_attributes",
    "should_trace",
    "create_tracer",
    "ATTR_QUEUE_NAME",
    "ATTR_MESSAGE_TYPE",
    "ATTR_MESSAGE_ID",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_ASYNC",
    "ATTR_OUTCOME",
    "ATTR_ACKNOWLEDGED",
    "ATTR_ERROR_TYPE",
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_MESSAGING_MESSAGE_ID",
]
