"""
Worker tracing: one span per consumed message and one per handler invocation.

The worker only ever opens two kinds of span, so the tracer API is shaped
around them instead of around generic span creation. Attribute sets are
built here from ``DeliveryMetadata`` and ``HandlerDescriptor``; call sites
only add the outcome once it is known.

OpenTelemetry is optional. Without it, or with tracing disabled,
``create_tracer()`` returns a ``NullTracer`` whose spans yield ``None``.

Example:
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.invocation_span(descriptor, metadata) as span:
    ...     if span:
    ...         span.set_attribute(ATTR_OUTCOME, "completed")
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from requestworker.observability.attributes import (
    ATTR_HANDLER_ASYNC,
    ATTR_HANDLER_NAME,
    ATTR_MESSAGE_ID,
    ATTR_MESSAGE_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_MESSAGE_ID,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_QUEUE_NAME,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from requestworker.context import DeliveryMetadata
    from requestworker.handlers.registry import HandlerDescriptor

# Optional OpenTelemetry import - single source of truth
try:
    from opentelemetry import trace

    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False
    trace = None  # type: ignore[assignment]

INVOCATION_SPAN = "requestworker.pipeline.invoke"
CONSUME_SPAN = "requestworker.broker.consume"


def invocation_attributes(
    descriptor: HandlerDescriptor,
    metadata: DeliveryMetadata,
) -> dict[str, Any]:
    """Span attributes describing which handler runs for which delivery."""
    return {
        ATTR_QUEUE_NAME: descriptor.queue_name,
        ATTR_MESSAGE_TYPE: descriptor.message_type.__name__,
        ATTR_MESSAGE_ID: metadata.message_id or "",
        ATTR_HANDLER_NAME: descriptor.handler_name,
        ATTR_HANDLER_ASYNC: descriptor.is_async,
    }


def consume_attributes(system: str, metadata: DeliveryMetadata) -> dict[str, Any]:
    """Messaging semantic-convention attributes for a consumed delivery."""
    return {
        ATTR_MESSAGING_SYSTEM: system,
        ATTR_MESSAGING_DESTINATION: metadata.queue_name,
        ATTR_MESSAGING_OPERATION: "process",
        ATTR_MESSAGING_MESSAGE_ID: metadata.message_id or "",
        ATTR_MESSAGE_TYPE: metadata.message_type,
    }


@runtime_checkable
class Tracer(Protocol):
    """
    What the pipeline and the brokers need from a tracer.

    Both span methods return a context manager yielding the live span, or
    ``None`` when nothing is recorded, so callers guard attribute writes
    with ``if span:``.
    """

    @property
    def enabled(self) -> bool: ...

    def invocation_span(
        self,
        descriptor: HandlerDescriptor,
        metadata: DeliveryMetadata,
    ) -> AbstractContextManager[Span | None]:
        """Span around one handler invocation, including scope lifetime."""
        ...

    def consume_span(
        self,
        system: str,
        metadata: DeliveryMetadata,
        parent: Any | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Consumer-kind span around one delivery.

        Args:
            system: Messaging system name ('rabbitmq', 'memory')
            metadata: The delivery being processed
            parent: Context extracted from message headers, linking the
                span to the producer's trace
        """
        ...


class NullTracer:
    """Records nothing. Used when tracing is disabled or OTEL is missing."""

    @property
    def enabled(self) -> bool:
        return False

    def invocation_span(
        self,
        descriptor: HandlerDescriptor,
        metadata: DeliveryMetadata,
    ) -> AbstractContextManager[None]:
        return contextlib.nullcontext()

    def consume_span(
        self,
        system: str,
        metadata: DeliveryMetadata,
        parent: Any | None = None,
    ) -> AbstractContextManager[None]:
        return contextlib.nullcontext()


class _WorkerTracer:
    """Builds the attribute sets; subclasses decide how a span is opened."""

    @property
    def enabled(self) -> bool:
        return True

    def invocation_span(
        self,
        descriptor: HandlerDescriptor,
        metadata: DeliveryMetadata,
    ) -> AbstractContextManager[Any]:
        return self._open(
            INVOCATION_SPAN,
            invocation_attributes(descriptor, metadata),
            consumer=False,
            parent=None,
        )

    def consume_span(
        self,
        system: str,
        metadata: DeliveryMetadata,
        parent: Any | None = None,
    ) -> AbstractContextManager[Any]:
        return self._open(
            CONSUME_SPAN,
            consume_attributes(system, metadata),
            consumer=True,
            parent=parent,
        )

    def _open(
        self,
        name: str,
        attributes: dict[str, Any],
        *,
        consumer: bool,
        parent: Any | None,
    ) -> AbstractContextManager[Any]:
        raise NotImplementedError


class OpenTelemetryTracer(_WorkerTracer):
    """
    Opens real OpenTelemetry spans; each becomes the current span while open.

    Raises:
        ImportError: If OpenTelemetry is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        if trace is None:
            raise ImportError("opentelemetry-api is required for OpenTelemetryTracer")
        self._tracer = trace.get_tracer(tracer_name)

    def _open(
        self,
        name: str,
        attributes: dict[str, Any],
        *,
        consumer: bool,
        parent: Any | None,
    ) -> AbstractContextManager[Span]:
        from opentelemetry.trace import SpanKind as OtelSpanKind

        return self._tracer.start_as_current_span(
            name,
            context=parent,
            kind=OtelSpanKind.CONSUMER if consumer else OtelSpanKind.INTERNAL,
            attributes=attributes,
        )


@dataclass
class RecordedSpan:
    """One span captured by ``RecordingTracer``."""

    name: str
    attributes: dict[str, Any]
    consumer: bool = False
    parent: Any | None = None


class RecordingTracer(_WorkerTracer):
    """
    Keeps every opened span in memory for test assertions.

    Spans yield ``None`` like ``NullTracer`` but ``enabled`` is True, so
    the attributes are still built and recorded.

    Example:
        >>> tracer = RecordingTracer()
        >>> pipeline = InvocationPipeline(scopes, shared, tracer=tracer)
        >>> await pipeline.invoke(descriptor, payload, None, metadata)
        >>> tracer.span_names
        ['requestworker.pipeline.invoke']
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @property
    def span_names(self) -> list[str]:
        return [recorded.name for recorded in self.spans]

    def clear(self) -> None:
        self.spans.clear()

    @contextlib.contextmanager
    def _open(
        self,
        name: str,
        attributes: dict[str, Any],
        *,
        consumer: bool,
        parent: Any | None,
    ) -> Iterator[None]:
        self.spans.append(RecordedSpan(name, attributes, consumer=consumer, parent=parent))
        yield None


def should_trace(enable_tracing: bool) -> bool:
    """Combine a component's enable_tracing setting with OTEL availability."""
    return enable_tracing and OTEL_AVAILABLE


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """OpenTelemetryTracer when enabled and available, else NullTracer."""
    if should_trace(enable_tracing):
        return OpenTelemetryTracer(name)
    return NullTracer()


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
]
