"""Library exceptions for the requestworker package."""

from typing import Any


class RequestWorkerError(Exception):
    """Base exception for requestworker library."""

    pass


class DomainError(RequestWorkerError):
    """
    Raised by handlers to reject a request on business-rule grounds.

    A domain error is an expected outcome, not an infrastructure fault:
    the invocation pipeline logs it at warning level and reports the
    message as consumed so the broker does not redeliver a request that
    can never succeed.

    Attributes:
        code: Optional application-defined error code
        details: Optional structured details for logging
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class RegistrationError(RequestWorkerError):
    """Raised when handler discovery or queue binding is misconfigured."""

    pass


class DuplicateBindingError(RegistrationError):
    """
    Raised when two handlers claim the same (queue, message type) pair.

    Attributes:
        queue_name: The contested queue
        message_type: The contested message type
        existing_handler: Qualified name of the handler registered first
        new_handler: Qualified name of the handler being registered
    """

    def __init__(
        self,
        queue_name: str,
        message_type: type,
        existing_handler: str,
        new_handler: str,
    ) -> None:
        self.queue_name = queue_name
        self.message_type = message_type
        self.existing_handler = existing_handler
        self.new_handler = new_handler
        super().__init__(
            f"Queue '{queue_name}' already has a handler for {message_type.__name__}: "
            f"{existing_handler}. Cannot also bind {new_handler}."
        )


class MarkerMetadataError(RegistrationError):
    """Raised when @background_request is given an unusable queue or message type."""

    pass


class ResolutionError(RequestWorkerError):
    """Raised when a resolution scope cannot provide the requested type."""

    def __init__(self, requested_type: type, reason: str) -> None:
        self.requested_type = requested_type
        self.reason = reason
        super().__init__(f"Cannot resolve {requested_type.__name__}: {reason}")


class BrokerError(RequestWorkerError):
    """Raised when there's an error in a request broker."""

    pass


class BrokerNotAvailableError(ImportError):
    """Raised when the aio-pika package is not installed."""

    def __init__(self) -> None:
        super().__init__(
            "aio-pika package is not installed. "
            "Install it with: pip install requestworker[rabbitmq]"
        )
