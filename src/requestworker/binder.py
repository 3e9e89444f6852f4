"""
Queue binding.

The binder is the startup step between the handler registry and the broker:
one ``receive_request`` call per descriptor, each with a callback that runs
the invocation pipeline for that descriptor. It performs no retry logic.
"""

import logging
from collections.abc import Iterable

from requestworker.brokers.interface import RequestBroker
from requestworker.handlers.registry import HandlerDescriptor
from requestworker.pipeline import InvocationPipeline

logger = logging.getLogger(__name__)


class QueueBinder:
    """
    Registers one broker consumer callback per handler descriptor.

    Args:
        broker: The broker to register with
        pipeline: The pipeline every callback runs
    """

    def __init__(self, broker: RequestBroker, pipeline: InvocationPipeline) -> None:
        self._broker = broker
        self._pipeline = pipeline
        self._bound: list[HandlerDescriptor] = []

    @property
    def bound(self) -> list[HandlerDescriptor]:
        """Descriptors bound so far, in binding order."""
        return list(self._bound)

    async def bind(self, descriptors: Iterable[HandlerDescriptor]) -> int:
        """
        Bind every descriptor to the broker.

        Each registration is awaited in turn, so a cancelled startup stops
        before further queues are registered.

        Args:
            descriptors: Descriptors to bind

        Returns:
            Number of bindings made
        """
        count = 0
        for descriptor in descriptors:
            await self._broker.receive_request(
                descriptor.queue_name,
                descriptor.message_type,
                self._pipeline.callback_for(descriptor),
            )
            self._bound.append(descriptor)
            count += 1

            logger.info(
                f"Bound {descriptor.handler_name} to queue {descriptor.queue_name}",
                extra={
                    "handler": descriptor.handler_name,
                    "queue": descriptor.queue_name,
                    "message_type": descriptor.message_type.__name__,
                    "is_async": descriptor.is_async,
                },
            )

        return count


__all__ = ["QueueBinder"]
