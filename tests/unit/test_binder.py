"""Unit tests for QueueBinder."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from requestworker import BrokerError, QueueBinder
from tests.fixtures import Note, OrderCreated, OrderService


class TestQueueBinder:
    """Tests for registering one consumer per descriptor."""

    @pytest.mark.asyncio
    async def test_binds_every_descriptor(self, memory_broker, pipeline, registry):
        binder = QueueBinder(memory_broker, pipeline)

        count = await binder.bind(registry.descriptors)

        assert count == 4
        assert binder.bound == registry.descriptors
        assert memory_broker.get_binding_count() == 4
        assert sorted(memory_broker.queues()) == [
            "notes.left",
            "notes.right",
            "orders.cancelled",
            "orders.created",
        ]

    @pytest.mark.asyncio
    async def test_passes_queue_type_and_callback(self, pipeline, registry):
        """receive_request gets the descriptor's queue, type and a pipeline callback."""
        broker = AsyncMock()
        binder = QueueBinder(broker, pipeline)
        descriptor = registry.get("orders.created", OrderCreated)

        await binder.bind([descriptor])

        broker.receive_request.assert_awaited_once()
        queue_name, message_type, callback = broker.receive_request.await_args.args
        assert queue_name == "orders.created"
        assert message_type is OrderCreated
        assert callback.__qualname__ == "on_request[OrderService.on_order_created]"

    @pytest.mark.asyncio
    async def test_bound_callback_runs_pipeline(
        self, memory_broker, pipeline, registry, scope_factory
    ):
        service = OrderService()
        scope_factory.provide(OrderService, lambda: service)
        await QueueBinder(memory_broker, pipeline).bind(registry.descriptors)
        await memory_broker.start()

        assert await memory_broker.deliver("orders.created", {"id": 7}) is True
        assert service.seen == [OrderCreated(id=7)]

    @pytest.mark.asyncio
    async def test_empty_registry_binds_nothing(self, memory_broker, pipeline):
        binder = QueueBinder(memory_broker, pipeline)

        assert await binder.bind([]) == 0
        assert memory_broker.get_binding_count() == 0

    @pytest.mark.asyncio
    async def test_broker_refusal_propagates(self, memory_broker, pipeline, registry):
        """A broker that refuses a binding stops startup; nothing is retried."""
        descriptor = registry.get("notes.left", Note)
        await memory_broker.receive_request("notes.left", Note, AsyncMock())

        binder = QueueBinder(memory_broker, pipeline)
        with pytest.raises(BrokerError):
            await binder.bind([descriptor])

        assert binder.bound == []

    @pytest.mark.asyncio
    async def test_cancelled_startup_stops_binding(self, pipeline, registry):
        """Cancellation during a registration leaves later queues unbound."""
        broker = AsyncMock()
        broker.receive_request.side_effect = [None, asyncio.CancelledError(), None, None]
        binder = QueueBinder(broker, pipeline)

        with pytest.raises(asyncio.CancelledError):
            await binder.bind(registry.descriptors)

        assert len(binder.bound) == 1
        assert broker.receive_request.await_count == 2

    @pytest.mark.asyncio
    async def test_logs_each_binding(self, memory_broker, pipeline, registry, caplog):
        with caplog.at_level(logging.INFO, logger="requestworker.binder"):
            await QueueBinder(memory_broker, pipeline).bind(registry.descriptors)

        messages = [r.getMessage() for r in caplog.records if r.name == "requestworker.binder"]
        assert "Bound OrderService.on_order_created to queue orders.created" in messages
        assert len(messages) == 4
