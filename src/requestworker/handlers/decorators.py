"""
Background request decorator.

This module contains the @background_request decorator, which marks a public
instance method of a background service as the handler for one message type
on one queue. The registry discovers marked methods at startup and binds each
of them to the broker.

Example:
    >>> from requestworker.handlers import background_request
    >>>
    >>> class OrderService(BackgroundService):
    ...     @background_request("orders.created", OrderCreated)
    ...     async def on_order_created(self, message: OrderCreated) -> None:
    ...         ...
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from requestworker.exceptions import MarkerMetadataError

# Type variable for handler functions - preserves the exact type of the decorated function
F = TypeVar("F", bound=Callable[..., Any])

_BINDING_ATTR = "_background_request"


@dataclass(frozen=True)
class RequestBinding:
    """
    Marker metadata attached to a decorated handler method.

    Attributes:
        queue_name: Queue the handler consumes from
        message_type: Type the broker deserializes the payload into
    """

    queue_name: str
    message_type: type


def background_request(queue_name: str, message_type: type) -> Callable[[F], F]:
    """
    Mark a method as the handler of ``message_type`` requests on ``queue_name``.

    Args:
        queue_name: Name of the queue to consume from
        message_type: The class the payload is deserialized into

    Returns:
        A decorator that attaches the binding and returns the function unchanged

    Raises:
        MarkerMetadataError: If the queue name is empty or message_type is not a class

    Handler Signatures:
        async def handler(self, message: MessageType) -> None
        async def handler(self, context: InvocationContext, message: MessageType) -> None

        Synchronous ``def`` handlers are accepted as well and are called
        directly, without suspending.
    """
    if not isinstance(queue_name, str) or not queue_name.strip():
        raise MarkerMetadataError(
            f"@background_request needs a non-empty queue name, got {queue_name!r}"
        )
    if not isinstance(message_type, type):
        raise MarkerMetadataError(
            f"@background_request({queue_name!r}, ...) needs a message class, "
            f"got {message_type!r}"
        )

    binding = RequestBinding(queue_name=queue_name, message_type=message_type)

    def decorator(func: F) -> F:
        setattr(func, _BINDING_ATTR, binding)
        return func

    return decorator


def get_request_binding(func: Callable[..., Any]) -> RequestBinding | None:
    """
    Get the binding attached by @background_request, or None.

    Example:
        >>> @background_request("orders.created", OrderCreated)
        ... async def on_created(self, message): pass
        >>> get_request_binding(on_created).queue_name
        'orders.created'
    """
    binding = getattr(func, _BINDING_ATTR, None)
    if isinstance(binding, RequestBinding):
        return binding
    return None


def is_background_request(func: Callable[..., Any]) -> bool:
    """Check if a function is decorated with @background_request."""
    return get_request_binding(func) is not None


__all__ = [
    "RequestBinding",
    "background_request",
    "get_request_binding",
    "is_background_request",
]
