"""
Handler infrastructure for background requests.

This module provides:
- background_request: Decorator marking a method as a queue handler
- BackgroundService / discover_types: Capability marker and discovery
- HandlerRegistry / HandlerDescriptor: Immutable (queue, message type) bindings
- invoke_handler: Uniform sync/async invocation of a descriptor

Example:
    >>> from requestworker.handlers import BackgroundService, background_request
    >>>
    >>> class OrderService(BackgroundService):
    ...     @background_request("orders.created", OrderCreated)
    ...     async def on_created(self, message: OrderCreated) -> None:
    ...         ...
"""

from requestworker.handlers.adapter import build_arguments, invoke_handler
from requestworker.handlers.decorators import (
    RequestBinding,
    background_request,
    get_request_binding,
    is_background_request,
)
from requestworker.handlers.discovery import BackgroundService, discover_types
from requestworker.handlers.registry import (
    HandlerDescriptor,
    HandlerRegistry,
    HandlerSignatureError,
)

__all__ = [
    "BackgroundService",
    "HandlerDescriptor",
    "HandlerRegistry",
    "HandlerSignatureError",
    "RequestBinding",
    "background_request",
    "build_arguments",
    "discover_types",
    "get_request_binding",
    "invoke_handler",
    "is_background_request",
]
