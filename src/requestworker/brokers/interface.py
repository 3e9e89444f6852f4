"""Request broker interface definitions.

A request broker owns everything between the wire and the invocation
pipeline: transport, deserialization into the bound message type, delivery
concurrency, and what happens after the callback answers (ack on True,
retry or dead-letter on False).

The worker only ever calls ``receive_request()`` once per handler binding,
then ``start()`` and ``stop()``.
"""

from abc import ABC, abstractmethod

from requestworker.protocols import RequestCallback


class RequestBroker(ABC):
    """
    Abstract broker that delivers requests to registered callbacks.

    Tracing Support:
        Implementations SHOULD take a ``Tracer`` from
        ``requestworker.observability`` through composition
        (``self._tracer = tracer or create_tracer(__name__, enable_tracing)``)
        and wrap each delivery in a consumer span named
        ``requestworker.broker.consume`` carrying ``ATTR_MESSAGING_SYSTEM``
        and ``ATTR_MESSAGING_DESTINATION``. Distributed brokers should
        extract trace context from message headers.

    Example:
        >>> broker = InMemoryRequestBroker()
        >>> await broker.receive_request("orders.created", OrderCreated, callback)
        >>> await broker.start()
        >>> await broker.deliver("orders.created", OrderCreated(id=7))
        True
    """

    @abstractmethod
    async def receive_request(
        self,
        queue_name: str,
        message_type: type,
        callback: RequestCallback,
    ) -> None:
        """
        Register ``callback`` for ``message_type`` messages on ``queue_name``.

        The broker deserializes each delivery into ``message_type`` and
        awaits ``callback(payload, state, metadata)``. It acknowledges the
        message when the callback returns True and applies its own
        retry/dead-letter policy otherwise.

        Args:
            queue_name: Queue to consume from
            message_type: Type the payload is deserialized into
            callback: Pipeline callback for this binding

        Raises:
            BrokerError: If the (queue, message type) pair is already taken
        """
        pass

    @abstractmethod
    async def start(self) -> None:
        """Begin delivering messages to registered callbacks."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering messages and release broker resources."""
        pass


__all__ = [
    "RequestBroker",
]
