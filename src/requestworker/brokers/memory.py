"""In-memory request broker implementation.

This module provides an in-process broker that hands payloads straight to
registered callbacks. Suitable for development, testing, and single-process
deployments where requests originate in the same process. For distributed
deployments, use RabbitMQRequestBroker instead.
"""

import logging
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from requestworker.brokers.interface import RequestBroker
from requestworker.context import DeliveryMetadata
from requestworker.exceptions import BrokerError
from requestworker.observability import Tracer, create_tracer
from requestworker.observability.attributes import ATTR_ACKNOWLEDGED
from requestworker.protocols import RequestCallback

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryRecord:
    """A delivery as seen by the in-memory broker, with its final verdict."""

    queue_name: str
    payload: Any
    metadata: DeliveryMetadata
    acknowledged: bool


class InMemoryRequestBroker(RequestBroker):
    """
    In-memory broker for request delivery.

    ``deliver()`` routes a payload to the callback bound to
    ``(queue, type(payload))``. When the payload's type has no binding and
    the queue has exactly one, the payload is validated into that binding's
    message type with pydantic, which lets tests and local producers send
    plain dicts.

    Features:
    - Thread-safe registration
    - Error isolation (a raising callback counts as not acknowledged)
    - Records of acknowledged and failed deliveries for assertions
    - Optional OpenTelemetry tracing

    Example:
        >>> broker = InMemoryRequestBroker()
        >>> await broker.receive_request("orders.created", OrderCreated, callback)
        >>> await broker.start()
        >>> await broker.deliver("orders.created", {"id": 7})
        True
    """

    def __init__(
        self,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        # queue name -> message type -> callback
        self._bindings: dict[str, dict[type, RequestCallback]] = {}
        self._lock = threading.RLock()
        self._running = False
        self._deliveries: list[DeliveryRecord] = []
        self._stats = {
            "deliveries": 0,
            "acknowledged": 0,
            "failed": 0,
            "callback_errors": 0,
            "deserialization_errors": 0,
        }

        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def receive_request(
        self,
        queue_name: str,
        message_type: type,
        callback: RequestCallback,
    ) -> None:
        with self._lock:
            queue_bindings = self._bindings.setdefault(queue_name, {})
            if message_type in queue_bindings:
                raise BrokerError(
                    f"Queue '{queue_name}' already has a consumer for {message_type.__name__}"
                )
            queue_bindings[message_type] = callback

        logger.info(
            f"Registered consumer for {message_type.__name__} on {queue_name}",
            extra={"queue": queue_name, "message_type": message_type.__name__},
        )

    async def start(self) -> None:
        self._running = True
        logger.info(
            "In-memory broker started",
            extra={"queues": self.queues()},
        )

    async def stop(self) -> None:
        self._running = False
        logger.info("In-memory broker stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def deliver(
        self,
        queue_name: str,
        payload: Any,
        *,
        message_type: type | None = None,
        state: BaseModel | None = None,
        message_id: str | None = None,
        correlation_id: str | None = None,
        headers: Mapping[str, Any] | None = None,
        redelivered: bool = False,
        delivery_attempt: int = 1,
    ) -> bool:
        """
        Deliver one message and return whether it was acknowledged.

        Args:
            queue_name: Queue to deliver on
            payload: Message instance, or raw data to validate
            message_type: Explicit binding to target (default: inferred)
            state: Per-call state handed to the callback
            message_id: Message identifier (generated when omitted)
            correlation_id: Optional correlation identifier
            headers: Optional transport headers
            redelivered: Flag the delivery as a redelivery
            delivery_attempt: 1-based attempt counter

        Returns:
            True if the callback acknowledged the message

        Raises:
            BrokerError: If the broker is stopped or no binding matches
        """
        if not self._running:
            raise BrokerError("In-memory broker is not running")

        target_type, callback = self._route(queue_name, payload, message_type)

        metadata = DeliveryMetadata(
            queue_name=queue_name,
            message_type=target_type.__name__,
            message_id=message_id or uuid.uuid4().hex,
            correlation_id=correlation_id,
            redelivered=redelivered,
            delivery_attempt=delivery_attempt,
            headers=headers or {},
        )
        self._stats["deliveries"] += 1

        with self._tracer.consume_span("memory", metadata) as span:
            acknowledged = await self._dispatch(target_type, callback, payload, state, metadata)
            if span:
                span.set_attribute(ATTR_ACKNOWLEDGED, acknowledged)

        with self._lock:
            self._deliveries.append(
                DeliveryRecord(
                    queue_name=queue_name,
                    payload=payload,
                    metadata=metadata,
                    acknowledged=acknowledged,
                )
            )
        self._stats["acknowledged" if acknowledged else "failed"] += 1
        return acknowledged

    def _route(
        self,
        queue_name: str,
        payload: Any,
        message_type: type | None,
    ) -> tuple[type, RequestCallback]:
        with self._lock:
            queue_bindings = dict(self._bindings.get(queue_name, {}))

        if not queue_bindings:
            raise BrokerError(f"No consumer registered on queue '{queue_name}'")

        if message_type is not None:
            if message_type not in queue_bindings:
                raise BrokerError(
                    f"Queue '{queue_name}' has no consumer for {message_type.__name__}"
                )
            return message_type, queue_bindings[message_type]

        if type(payload) in queue_bindings:
            return type(payload), queue_bindings[type(payload)]

        if len(queue_bindings) == 1:
            return next(iter(queue_bindings.items()))

        available = ", ".join(sorted(t.__name__ for t in queue_bindings))
        raise BrokerError(
            f"Cannot route {type(payload).__name__} on queue '{queue_name}'. "
            f"Available message types: {available}"
        )

    async def _dispatch(
        self,
        target_type: type,
        callback: RequestCallback,
        payload: Any,
        state: BaseModel | None,
        metadata: DeliveryMetadata,
    ) -> bool:
        if not isinstance(payload, target_type):
            try:
                payload = TypeAdapter(target_type).validate_python(payload)
            except ValidationError as e:
                self._stats["deserialization_errors"] += 1
                logger.error(
                    f"Cannot deserialize message on {metadata.queue_name} "
                    f"into {target_type.__name__}: {e}",
                    extra={**metadata.log_extra(), "error": str(e)},
                )
                return False

        try:
            return bool(await callback(payload, state, metadata))
        except Exception as e:
            self._stats["callback_errors"] += 1
            logger.error(
                f"Consumer callback failed on {metadata.queue_name}: {e}",
                exc_info=True,
                extra={**metadata.log_extra(), "error": str(e)},
            )
            return False

    def queues(self) -> list[str]:
        """Queue names with at least one consumer."""
        with self._lock:
            return list(self._bindings)

    def get_binding_count(self, queue_name: str | None = None) -> int:
        """Number of registered (queue, message type) consumers."""
        with self._lock:
            if queue_name is None:
                return sum(len(b) for b in self._bindings.values())
            return len(self._bindings.get(queue_name, {}))

    @property
    def deliveries(self) -> list[DeliveryRecord]:
        """All deliveries so far, in completion order."""
        with self._lock:
            return list(self._deliveries)

    @property
    def acknowledged(self) -> list[DeliveryRecord]:
        return [d for d in self.deliveries if d.acknowledged]

    @property
    def failed(self) -> list[DeliveryRecord]:
        """Deliveries a real broker would retry or dead-letter."""
        return [d for d in self.deliveries if not d.acknowledged]

    def get_stats(self) -> dict[str, int]:
        """
        Get statistics about broker operation.

        Returns:
            Dictionary with counts of deliveries, acknowledged, failed,
            callback_errors and deserialization_errors
        """
        return dict(self._stats)

    def clear(self) -> None:
        """Forget recorded deliveries and registrations."""
        with self._lock:
            self._bindings.clear()
            self._deliveries.clear()


__all__ = [
    "DeliveryRecord",
    "InMemoryRequestBroker",
]
