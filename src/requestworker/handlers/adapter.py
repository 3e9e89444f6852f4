"""
Uniform invocation of handler descriptors.

Handlers may be declared ``async def`` or ``def`` and may take the payload
alone or the invocation context plus the payload. ``invoke_handler`` hides
those differences behind a single awaitable call.
"""

import inspect
import logging
from typing import Any

from requestworker.context import InvocationContext
from requestworker.handlers.registry import HandlerDescriptor

logger = logging.getLogger(__name__)


def build_arguments(descriptor: HandlerDescriptor, context: InvocationContext) -> tuple[Any, ...]:
    """Positional arguments after ``self`` for the descriptor's arity."""
    if descriptor.takes_context:
        return (context, context.payload)
    return (context.payload,)


async def invoke_handler(
    descriptor: HandlerDescriptor,
    instance: Any,
    context: InvocationContext,
) -> Any:
    """
    Call the handler method on ``instance`` and wait for it to finish.

    Async handlers are awaited; this is the only point where an invocation
    suspends. Synchronous handlers run inline. A synchronous handler that
    unexpectedly returns an awaitable (a sync wrapper around a coroutine)
    is awaited too, so its failure surfaces here rather than being lost.

    Args:
        descriptor: The binding to invoke
        instance: Handler instance resolved from the invocation scope
        context: The invocation context

    Returns:
        Whatever the handler returned

    Raises:
        Exception: Anything the handler raises, unwrapped
    """
    args = build_arguments(descriptor, context)

    if descriptor.is_async:
        return await descriptor.method(instance, *args)

    result = descriptor.method(instance, *args)
    if inspect.isawaitable(result):
        logger.debug(
            "Synchronous handler %s returned an awaitable, awaiting it",
            descriptor.handler_name,
            extra={"handler": descriptor.handler_name},
        )
        result = await result
    return result


__all__ = [
    "build_arguments",
    "invoke_handler",
]
