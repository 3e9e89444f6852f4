"""
Handler registry for background request handlers.

The registry turns handler methods into immutable ``HandlerDescriptor``
entries, one per (queue, message type) pair. Entries can be added
explicitly with ``register()``, which is the typed startup-builder path,
or collected from @background_request decorated methods with
``register_type()`` / ``from_marker()``.

Example:
    >>> from requestworker.handlers import HandlerRegistry, background_request
    >>>
    >>> class OrderService(BackgroundService):
    ...     @background_request("orders.created", OrderCreated)
    ...     async def on_created(self, message: OrderCreated) -> None:
    ...         pass
    >>>
    >>> registry = HandlerRegistry.from_marker(BackgroundService)
    >>> registry.queues()
    ['orders.created']
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from requestworker.exceptions import DuplicateBindingError, RegistrationError
from requestworker.handlers.decorators import get_request_binding
from requestworker.handlers.discovery import BackgroundService, discover_types

logger = logging.getLogger(__name__)


class HandlerSignatureError(ValueError):
    """
    Raised when a background request handler has an invalid signature.

    Attributes:
        handler_name: Qualified name of the handler method
        message_type: The message type from @background_request
        param_count: Actual number of parameters (excluding self)
    """

    def __init__(
        self,
        handler_name: str,
        message_type: type,
        param_count: int,
    ) -> None:
        self.handler_name = handler_name
        self.message_type = message_type
        self.param_count = param_count

        message_name = message_type.__name__
        method_name = handler_name.rsplit(".", 1)[-1]

        message = (
            f"Handler '{handler_name}' has invalid signature "
            f"for messages of type {message_name}.\n\n"
            f"Expected one of:\n"
            f"  async def {method_name}(self, message: {message_name}) -> None\n"
            f"  async def {method_name}(self, context, message: {message_name}) -> None\n\n"
            f"Got: {param_count} parameter(s) (excluding self)\n\n"
            f"Hint: Ensure your handler has exactly 1 or 2 parameters after 'self'."
        )

        super().__init__(message)


@dataclass(frozen=True)
class HandlerDescriptor:
    """
    Immutable binding of a handler method to a queue and message type.

    Attributes:
        queue_name: Queue the handler consumes from
        message_type: Type the payload is deserialized into
        owner_type: Class resolved from the invocation scope
        method: The plain function, called as ``method(instance, ...)``
        is_async: Whether the method is a coroutine function
        handler_name: ``Owner.method`` for logging and tracing
        param_count: 1 for ``(self, message)``, 2 for ``(self, context, message)``
    """

    queue_name: str
    message_type: type
    owner_type: type
    method: Callable[..., Any]
    is_async: bool
    handler_name: str
    param_count: int = 1

    @property
    def key(self) -> tuple[str, type]:
        """The (queue_name, message_type) pair that identifies this binding."""
        return (self.queue_name, self.message_type)

    @property
    def takes_context(self) -> bool:
        """Whether the handler wants the InvocationContext as first argument."""
        return self.param_count == 2


class HandlerRegistry:
    """
    Registry of handler descriptors keyed by (queue, message type).

    Registration happens once at startup and is expected to fail loudly:
    an ambiguous binding raises ``DuplicateBindingError`` and a malformed
    handler raises ``HandlerSignatureError`` or ``RegistrationError``.

    Thread-Safety:
        Registration and lookup use an internal lock.
    """

    def __init__(self) -> None:
        self._descriptors: dict[tuple[str, type], HandlerDescriptor] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_marker(cls, marker: type = BackgroundService) -> HandlerRegistry:
        """
        Build a registry from every concrete type assignable to ``marker``.

        Args:
            marker: The capability base class

        Returns:
            A populated registry

        Raises:
            DuplicateBindingError: If two handlers claim the same pair
            HandlerSignatureError: If a handler has the wrong arity
        """
        registry = cls()
        for owner_type in discover_types(marker):
            registry.register_type(owner_type)
        return registry

    def register(
        self,
        owner_type: type,
        queue_name: str,
        message_type: type,
        method: Callable[..., Any],
    ) -> HandlerDescriptor:
        """
        Register a single handler method.

        Args:
            owner_type: Class the handler instance is resolved as
            queue_name: Queue to consume from
            message_type: Payload type
            method: Plain function defined on (or inherited by) owner_type

        Returns:
            The created descriptor

        Raises:
            DuplicateBindingError: If (queue_name, message_type) is taken
            HandlerSignatureError: If the method has the wrong arity
            RegistrationError: If method is not callable
        """
        if not callable(method):
            raise RegistrationError(
                f"Handler for '{queue_name}' on {owner_type.__name__} is not callable: {method!r}"
            )

        handler_name = f"{owner_type.__name__}.{getattr(method, '__name__', repr(method))}"
        param_count = self._count_parameters(method)
        if param_count not in (1, 2):
            raise HandlerSignatureError(
                handler_name=handler_name,
                message_type=message_type,
                param_count=param_count,
            )
        self._check_annotation(method, handler_name, message_type)

        descriptor = HandlerDescriptor(
            queue_name=queue_name,
            message_type=message_type,
            owner_type=owner_type,
            method=method,
            is_async=inspect.iscoroutinefunction(method),
            handler_name=handler_name,
            param_count=param_count,
        )

        with self._lock:
            existing = self._descriptors.get(descriptor.key)
            if existing is not None:
                raise DuplicateBindingError(
                    queue_name=queue_name,
                    message_type=message_type,
                    existing_handler=existing.handler_name,
                    new_handler=handler_name,
                )
            self._descriptors[descriptor.key] = descriptor

        logger.debug(
            "Registered handler %s for %s on %s",
            handler_name,
            message_type.__name__,
            queue_name,
            extra={
                "handler": handler_name,
                "queue": queue_name,
                "message_type": message_type.__name__,
                "is_async": descriptor.is_async,
                "param_count": param_count,
            },
        )
        return descriptor

    def register_type(self, owner_type: type) -> list[HandlerDescriptor]:
        """
        Register every @background_request method of ``owner_type``.

        Only public instance methods count. A marker on a private method is
        skipped with a warning; a marker on a static or class method is a
        registration error.

        Args:
            owner_type: The class to scan

        Returns:
            Descriptors created for this type, in name order
        """
        created: list[HandlerDescriptor] = []

        for attr_name in dir(owner_type):
            if attr_name.startswith("__"):
                continue

            raw = inspect.getattr_static(owner_type, attr_name, None)
            if isinstance(raw, (staticmethod, classmethod)):
                if get_request_binding(raw.__func__) is not None:
                    raise RegistrationError(
                        f"@background_request on {owner_type.__name__}.{attr_name} "
                        f"must decorate an instance method"
                    )
                continue

            if not inspect.isfunction(raw):
                continue

            binding = get_request_binding(raw)
            if binding is None:
                continue

            if attr_name.startswith("_"):
                logger.warning(
                    "Ignoring @background_request on non-public method %s.%s",
                    owner_type.__name__,
                    attr_name,
                    extra={"owner": owner_type.__name__, "handler": attr_name},
                )
                continue

            created.append(
                self.register(
                    owner_type,
                    binding.queue_name,
                    binding.message_type,
                    raw,
                )
            )

        return created

    @staticmethod
    def _count_parameters(method: Callable[..., Any]) -> int:
        """Number of parameters after ``self``."""
        try:
            sig = inspect.signature(method)
        except (ValueError, TypeError):
            # Can't inspect signature - assume (self, message)
            return 1
        return len(sig.parameters) - 1

    @staticmethod
    def _check_annotation(
        method: Callable[..., Any],
        handler_name: str,
        message_type: type,
    ) -> None:
        """Warn when the message parameter annotation disagrees with the binding."""
        try:
            params = list(inspect.signature(method).parameters.values())
        except (ValueError, TypeError):
            return

        annotation = params[-1].annotation
        if (
            annotation is not inspect.Parameter.empty
            and isinstance(annotation, type)
            and not issubclass(message_type, annotation)
        ):
            logger.warning(
                "Handler %s: message annotation %s doesn't match bound type %s",
                handler_name,
                annotation.__name__,
                message_type.__name__,
                extra={
                    "handler": handler_name,
                    "expected_type": message_type.__name__,
                    "actual_annotation": annotation.__name__,
                },
            )

    def get(self, queue_name: str, message_type: type) -> HandlerDescriptor | None:
        """Get the descriptor bound to (queue_name, message_type)."""
        with self._lock:
            return self._descriptors.get((queue_name, message_type))

    def for_queue(self, queue_name: str) -> list[HandlerDescriptor]:
        """Get all descriptors bound to one queue."""
        with self._lock:
            return [d for d in self._descriptors.values() if d.queue_name == queue_name]

    def queues(self) -> list[str]:
        """Distinct queue names, in registration order."""
        with self._lock:
            return list(dict.fromkeys(d.queue_name for d in self._descriptors.values()))

    @property
    def descriptors(self) -> list[HandlerDescriptor]:
        """All descriptors, in registration order."""
        with self._lock:
            return list(self._descriptors.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)

    def __iter__(self) -> Iterator[HandlerDescriptor]:
        return iter(self.descriptors)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._descriptors

    def __repr__(self) -> str:
        return f"HandlerRegistry(handlers={len(self)}, queues={len(self.queues())})"


__all__ = [
    "HandlerDescriptor",
    "HandlerRegistry",
    "HandlerSignatureError",
]
