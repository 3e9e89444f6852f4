"""
Background worker host.

``WorkerHost`` wires the pieces together at startup: it builds (or takes)
the handler registry, creates the invocation pipeline and the queue binder,
binds every handler, then starts the broker. Registration errors surface
from ``start()`` before any queue is bound.

Example:
    >>> host = WorkerHost(
    ...     broker=InMemoryRequestBroker(),
    ...     scope_factory=ContainerScopeFactory(RequestContainer),
    ...     shared_state=SharedState(WorkerState()),
    ... )
    >>> async with host:
    ...     await host.broker.deliver("orders.created", {"id": 7})
"""

from __future__ import annotations

import logging
from typing import Any

from requestworker.binder import QueueBinder
from requestworker.brokers.interface import RequestBroker
from requestworker.classifier import ErrorClassifier
from requestworker.config import WorkerConfig
from requestworker.handlers.discovery import BackgroundService
from requestworker.handlers.registry import HandlerRegistry
from requestworker.observability import Tracer
from requestworker.pipeline import InvocationPipeline
from requestworker.protocols import ScopeFactory
from requestworker.state import SharedState

logger = logging.getLogger(__name__)


class WorkerHost:
    """
    Hosts background request handlers on a broker.

    Args:
        broker: The request broker
        scope_factory: Opens one resolution scope per delivery
        shared_state: Worker-wide state read by every invocation
        registry: Pre-built registry; discovered from ``marker`` when omitted
        marker: Capability marker used for discovery
        config: Worker configuration
        classifier: Custom error classifier; built from config when omitted
        tracer: Optional custom Tracer for the pipeline
    """

    def __init__(
        self,
        broker: RequestBroker,
        scope_factory: ScopeFactory,
        shared_state: SharedState[Any],
        *,
        registry: HandlerRegistry | None = None,
        marker: type = BackgroundService,
        config: WorkerConfig | None = None,
        classifier: ErrorClassifier | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._broker = broker
        self._scope_factory = scope_factory
        self._shared_state = shared_state
        self._registry = registry
        self._marker = marker
        self._config = config or WorkerConfig()
        self._classifier = classifier or ErrorClassifier(
            self._config.recognized_errors,
            ack_on_domain_error=self._config.ack_on_domain_error,
        )
        self._tracer = tracer
        self._pipeline: InvocationPipeline | None = None
        self._running = False

    @property
    def broker(self) -> RequestBroker:
        return self._broker

    @property
    def shared_state(self) -> SharedState[Any]:
        return self._shared_state

    @property
    def registry(self) -> HandlerRegistry | None:
        """The handler registry, once built."""
        return self._registry

    @property
    def pipeline(self) -> InvocationPipeline | None:
        """The invocation pipeline, once started."""
        return self._pipeline

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """
        Discover handlers, bind them and start the broker.

        Raises:
            DuplicateBindingError: If two handlers claim the same binding
            HandlerSignatureError: If a handler has the wrong arity
            RegistrationError: For other malformed registrations
        """
        if self._running:
            logger.warning("WorkerHost already running")
            return

        if self._registry is None:
            self._registry = HandlerRegistry.from_marker(self._marker)

        self._pipeline = InvocationPipeline(
            self._scope_factory,
            self._shared_state,
            classifier=self._classifier,
            state_type=self._config.state_type,
            tracer=self._tracer,
            enable_tracing=self._config.enable_tracing,
        )
        binder = QueueBinder(self._broker, self._pipeline)
        bound = await binder.bind(self._registry.descriptors)

        if bound == 0:
            logger.warning(
                f"No @background_request handlers found for {self._marker.__name__}",
                extra={"marker": self._marker.__name__},
            )

        await self._broker.start()
        self._running = True

        logger.info(
            f"Worker started with {bound} handler(s) on {len(self._registry.queues())} queue(s)",
            extra={
                "handlers": bound,
                "queues": self._registry.queues(),
            },
        )

    async def stop(self) -> None:
        """Stop the broker."""
        if not self._running:
            return
        await self._broker.stop()
        self._running = False
        logger.info("Worker stopped")

    async def __aenter__(self) -> WorkerHost:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.stop()


__all__ = ["WorkerHost"]
