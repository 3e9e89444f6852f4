"""
Shared pytest fixtures for the requestworker library tests.

This module provides:
- Shared state fixtures (shared_state)
- Scope factory fixtures (scope_factory)
- Registry and pipeline fixtures (registry, pipeline)
- Broker fixtures (memory_broker)
- Metadata helpers (make_metadata)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from requestworker import (
    DeliveryMetadata,
    HandlerRegistry,
    InMemoryRequestBroker,
    InvocationPipeline,
    SharedState,
)
from requestworker.observability import NullTracer
from tests.fixtures import FixtureService, RecordingScopeFactory, WorkerState

# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def shared_state() -> SharedState[WorkerState]:
    """Provide a fresh shared state holder for tenant 'acme'."""
    return SharedState(WorkerState(tenant="acme"))


@pytest.fixture
def scope_factory() -> RecordingScopeFactory:
    """Provide an empty recording scope factory; tests register providers."""
    return RecordingScopeFactory()


@pytest.fixture
def registry() -> HandlerRegistry:
    """Provide a registry built from the fixture services."""
    return HandlerRegistry.from_marker(FixtureService)


@pytest.fixture
def pipeline(
    scope_factory: RecordingScopeFactory,
    shared_state: SharedState[WorkerState],
) -> InvocationPipeline:
    """Provide a pipeline over the recording scope factory, tracing disabled."""
    return InvocationPipeline(scope_factory, shared_state, tracer=NullTracer())


@pytest.fixture
def memory_broker() -> InMemoryRequestBroker:
    """Provide a fresh in-memory broker with tracing disabled."""
    return InMemoryRequestBroker(enable_tracing=False)


@pytest.fixture
def make_metadata() -> Callable[..., DeliveryMetadata]:
    """Provide a factory for delivery metadata."""

    def _make(queue_name: str = "orders.created", **kwargs: Any) -> DeliveryMetadata:
        kwargs.setdefault("message_type", "OrderCreated")
        kwargs.setdefault("message_id", "msg-1")
        return DeliveryMetadata(queue_name=queue_name, **kwargs)

    return _make
