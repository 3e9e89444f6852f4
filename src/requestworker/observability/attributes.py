"""
Standard span attributes for requestworker.

Messaging attributes follow OpenTelemetry semantic conventions; the rest are
namespaced under ``requestworker.``.
"""

# =============================================================================
# Request Attributes
# =============================================================================

ATTR_QUEUE_NAME = "requestworker.queue.name"
"""Queue the request was delivered on."""

ATTR_MESSAGE_TYPE = "requestworker.message.type"
"""Class name of the deserialized request payload."""

ATTR_MESSAGE_ID = "requestworker.message.id"
"""Broker-assigned message identifier, if any."""

# =============================================================================
# Handler Attributes
# =============================================================================

ATTR_HANDLER_NAME = "requestworker.handler.name"
"""Qualified name of the handler method (e.g., 'OrderService.on_created')."""

ATTR_HANDLER_ASYNC = "requestworker.handler.async"
"""Whether the handler method is a coroutine function."""

ATTR_OUTCOME = "requestworker.outcome"
"""Classified invocation outcome ('completed', 'rejected', 'failed')."""

ATTR_ACKNOWLEDGED = "requestworker.acknowledged"
"""Boolean result handed back to the broker."""

ATTR_ERROR_TYPE = "requestworker.error.type"
"""Exception class name for rejected or failed invocations."""

# =============================================================================
# Messaging Attributes (OpenTelemetry Semantic Conventions)
# =============================================================================

ATTR_MESSAGING_SYSTEM = "messaging.system"
"""Messaging system identifier (e.g., 'rabbitmq', 'memory')."""

ATTR_MESSAGING_DESTINATION = "messaging.destination"
"""Queue the message was consumed from."""

ATTR_MESSAGING_OPERATION = "messaging.operation"
"""Messaging operation ('receive', 'process')."""

ATTR_MESSAGING_MESSAGE_ID = "messaging.message_id"
"""Message identifier as reported by the broker."""


__all__ = [
    "ATTR_QUEUE_NAME",
    "ATTR_MESSAGE_TYPE",
    "ATTR_MESSAGE_ID",
    "ATTR_HANDLER_NAME",
    "ATTR_HANDLER_ASYNC",
    "ATTR_OUTCOME",
    "ATTR_ACKNOWLEDGED",
    "ATTR_ERROR_TYPE",
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_MESSAGING_MESSAGE_ID",
]
