"""
Per-delivery data handed from the broker to the invocation pipeline.

``DeliveryMetadata`` describes where and how a message arrived;
``InvocationContext`` is what a two-parameter handler receives alongside
the payload. Both exist for exactly one invocation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel

    from requestworker.handlers.registry import HandlerDescriptor


@dataclass(frozen=True)
class DeliveryMetadata:
    """
    Broker-supplied attributes of a single delivery.

    Attributes:
        queue_name: Queue the message was consumed from
        message_type: Name of the payload type
        message_id: Broker message identifier, if the producer set one
        correlation_id: Correlation identifier, if any
        reply_to: Reply queue requested by the producer, if any
        redelivered: Whether the broker flagged this as a redelivery
        delivery_attempt: 1-based attempt counter, when the broker tracks it
        headers: Read-only view of transport headers
    """

    queue_name: str
    message_type: str
    message_id: str | None = None
    correlation_id: str | None = None
    reply_to: str | None = None
    redelivered: bool = False
    delivery_attempt: int = 1
    headers: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def log_extra(self) -> dict[str, Any]:
        """Fields for a logging ``extra`` dict."""
        return {
            "queue": self.queue_name,
            "message_type": self.message_type,
            "message_id": self.message_id,
            "correlation_id": self.correlation_id,
            "delivery_attempt": self.delivery_attempt,
        }


@dataclass
class InvocationContext:
    """
    Everything a single invocation owns.

    The state is a private copy; handlers may mutate it freely without
    affecting the shared state or concurrent invocations.

    Attributes:
        payload: The deserialized message
        state: Per-call state merged from the shared state at call time
        metadata: Delivery metadata
        descriptor: The handler binding being invoked
    """

    payload: Any
    state: BaseModel
    metadata: DeliveryMetadata
    descriptor: HandlerDescriptor

    @property
    def queue_name(self) -> str:
        return self.metadata.queue_name


__all__ = [
    "DeliveryMetadata",
    "InvocationContext",
]
