"""
requestworker - Background request worker for Python.

This library provides:
- @background_request handler discovery over a capability marker
- Queue binding of one broker consumer per (queue, message type)
- An isolated invocation pipeline per delivered message: shared-state
  merge, scoped dependency resolution, sync/async handler invocation
- Outcome classification of domain errors vs. unknown failures
- In-memory and RabbitMQ brokers, dependency_injector resolution scopes
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("requestworker")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from requestworker.binder import QueueBinder
from requestworker.brokers.interface import RequestBroker
from requestworker.brokers.memory import DeliveryRecord, InMemoryRequestBroker

# RabbitMQ broker
from requestworker.brokers.rabbitmq import (
    RABBITMQ_AVAILABLE,
    RabbitMQBrokerConfig,
    RabbitMQRequestBroker,
)
from requestworker.classifier import ErrorClassifier, InvocationOutcome
from requestworker.config import WorkerConfig
from requestworker.containers import ContainerScope, ContainerScopeFactory
from requestworker.context import DeliveryMetadata, InvocationContext
from requestworker.exceptions import (
    BrokerError,
    BrokerNotAvailableError,
    DomainError,
    DuplicateBindingError,
    MarkerMetadataError,
    RegistrationError,
    RequestWorkerError,
    ResolutionError,
)
from requestworker.handlers import (
    BackgroundService,
    HandlerDescriptor,
    HandlerRegistry,
    HandlerSignatureError,
    background_request,
    discover_types,
    get_request_binding,
    is_background_request,
)
from requestworker.host import WorkerHost
from requestworker.pipeline import InvocationPipeline
from requestworker.protocols import RequestCallback, ResolutionScope, ScopeFactory
from requestworker.state import SharedState, merge_state

__all__ = [
    "__version__",
    # Handlers
    "BackgroundService",
    "HandlerDescriptor",
    "HandlerRegistry",
    "HandlerSignatureError",
    "background_request",
    "discover_types",
    "get_request_binding",
    "is_background_request",
    # Pipeline
    "InvocationPipeline",
    "InvocationContext",
    "DeliveryMetadata",
    "ErrorClassifier",
    "InvocationOutcome",
    "SharedState",
    "merge_state",
    # Hosting
    "QueueBinder",
    "WorkerHost",
    "WorkerConfig",
    # Brokers
    "RequestBroker",
    "InMemoryRequestBroker",
    "DeliveryRecord",
    "RABBITMQ_AVAILABLE",
    "RabbitMQBrokerConfig",
    "RabbitMQRequestBroker",
    # Resolution
    "RequestCallback",
    "ResolutionScope",
    "ScopeFactory",
    "ContainerScope",
    "ContainerScopeFactory",
    # Exceptions
    "RequestWorkerError",
    "DomainError",
    "RegistrationError",
    "DuplicateBindingError",
    "MarkerMetadataError",
    "ResolutionError",
    "BrokerError",
    "BrokerNotAvailableError",
]
