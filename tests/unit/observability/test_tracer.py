"""
Unit tests for the worker tracers.

Tests for:
- Tracer Protocol (runtime_checkable)
- Invocation and consume attribute sets
- NullTracer, RecordingTracer and OpenTelemetryTracer
- create_tracer() and should_trace()
"""

from __future__ import annotations

import pytest

from requestworker import DeliveryMetadata
from requestworker.observability import (
    ATTR_HANDLER_ASYNC,
    ATTR_HANDLER_NAME,
    ATTR_MESSAGE_ID,
    ATTR_MESSAGE_TYPE,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_OUTCOME,
    ATTR_QUEUE_NAME,
    CONSUME_SPAN,
    INVOCATION_SPAN,
    OTEL_AVAILABLE,
    NullTracer,
    OpenTelemetryTracer,
    RecordingTracer,
    Tracer,
    consume_attributes,
    create_tracer,
    invocation_attributes,
    should_trace,
)
from tests.fixtures import OrderCreated

requires_otel = pytest.mark.skipif(not OTEL_AVAILABLE, reason="OTEL not installed")


@pytest.fixture
def descriptor(registry):
    return registry.get("orders.created", OrderCreated)


@pytest.fixture
def metadata():
    return DeliveryMetadata(
        queue_name="orders.created", message_type="OrderCreated", message_id="m-1"
    )


class TestTracerProtocol:
    """Every tracer implementation satisfies the protocol."""

    def test_null_tracer_implements_protocol(self):
        assert isinstance(NullTracer(), Tracer)

    def test_recording_tracer_implements_protocol(self):
        assert isinstance(RecordingTracer(), Tracer)

    @requires_otel
    def test_otel_tracer_implements_protocol(self):
        assert isinstance(OpenTelemetryTracer(__name__), Tracer)


class TestAttributes:
    def test_invocation_attributes(self, descriptor, metadata):
        assert invocation_attributes(descriptor, metadata) == {
            ATTR_QUEUE_NAME: "orders.created",
            ATTR_MESSAGE_TYPE: "OrderCreated",
            ATTR_MESSAGE_ID: "m-1",
            ATTR_HANDLER_NAME: "OrderService.on_order_created",
            ATTR_HANDLER_ASYNC: descriptor.is_async,
        }

    def test_consume_attributes(self, metadata):
        attributes = consume_attributes("memory", metadata)

        assert attributes[ATTR_MESSAGING_SYSTEM] == "memory"
        assert attributes[ATTR_MESSAGING_DESTINATION] == "orders.created"
        assert attributes[ATTR_MESSAGING_OPERATION] == "process"
        assert attributes[ATTR_MESSAGE_TYPE] == "OrderCreated"

    def test_missing_message_id_is_empty(self, descriptor):
        metadata = DeliveryMetadata(queue_name="orders.created", message_type="OrderCreated")

        assert invocation_attributes(descriptor, metadata)[ATTR_MESSAGE_ID] == ""

    def test_namespaced(self):
        for attr in (ATTR_QUEUE_NAME, ATTR_HANDLER_NAME, ATTR_OUTCOME):
            assert attr.startswith("requestworker.")


class TestNullTracer:
    def test_spans_yield_none(self, descriptor, metadata):
        tracer = NullTracer()

        with tracer.invocation_span(descriptor, metadata) as span:
            assert span is None
        with tracer.consume_span("memory", metadata) as span:
            assert span is None

        assert tracer.enabled is False

    def test_exceptions_propagate(self, descriptor, metadata):
        with pytest.raises(KeyError):
            with NullTracer().invocation_span(descriptor, metadata):
                raise KeyError("boom")


class TestRecordingTracer:
    """Tests for the tracer used in assertions."""

    def test_records_both_span_kinds(self, descriptor, metadata):
        tracer = RecordingTracer()
        parent = object()

        with tracer.consume_span("rabbitmq", metadata, parent):
            with tracer.invocation_span(descriptor, metadata):
                pass

        assert tracer.span_names == [CONSUME_SPAN, INVOCATION_SPAN]
        consume, invoke = tracer.spans
        assert consume.consumer is True
        assert consume.parent is parent
        assert invoke.consumer is False
        assert invoke.attributes[ATTR_HANDLER_NAME] == "OrderService.on_order_created"
        assert tracer.enabled is True

    def test_clear(self, metadata):
        tracer = RecordingTracer()
        with tracer.consume_span("memory", metadata):
            pass

        tracer.clear()

        assert tracer.spans == []


@requires_otel
class TestOpenTelemetryTracer:
    def test_invocation_span(self, descriptor, metadata):
        tracer = OpenTelemetryTracer(__name__)

        with tracer.invocation_span(descriptor, metadata) as span:
            assert span is not None
            span.set_attribute(ATTR_OUTCOME, "completed")

        assert tracer.enabled is True

    def test_consume_span_without_parent(self, metadata):
        with OpenTelemetryTracer(__name__).consume_span("rabbitmq", metadata) as span:
            assert span is not None


class TestCreateTracer:
    def test_disabled_gives_null_tracer(self):
        assert isinstance(create_tracer(__name__, enable_tracing=False), NullTracer)

    def test_enabled_follows_availability(self):
        tracer = create_tracer(__name__, enable_tracing=True)

        expected = OpenTelemetryTracer if OTEL_AVAILABLE else NullTracer
        assert isinstance(tracer, expected)

    def test_unavailable_gives_null_tracer(self, monkeypatch):
        monkeypatch.setattr("requestworker.observability.tracer.OTEL_AVAILABLE", False)

        assert isinstance(create_tracer(__name__, enable_tracing=True), NullTracer)


class TestShouldTrace:
    def test_false_when_disabled(self):
        assert should_trace(False) is False

    @requires_otel
    def test_true_when_enabled_and_available(self):
        assert should_trace(True) is True

    def test_false_when_unavailable(self, monkeypatch):
        monkeypatch.setattr("requestworker.observability.tracer.OTEL_AVAILABLE", False)

        assert should_trace(True) is False
