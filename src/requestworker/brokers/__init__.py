"""
Request brokers.

- RequestBroker: Abstract broker interface
- InMemoryRequestBroker: In-process delivery for tests and local use
- RabbitMQRequestBroker: aio-pika backed broker (requires requestworker[rabbitmq])
"""

from requestworker.brokers.interface import RequestBroker
from requestworker.brokers.memory import DeliveryRecord, InMemoryRequestBroker

__all__ = [
    "DeliveryRecord",
    "InMemoryRequestBroker",
    "RequestBroker",
]
