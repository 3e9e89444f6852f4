"""
Canonical protocol definitions for the requestworker library.

Protocols:
- ResolutionScope: Resolves handler instances for one invocation
- ScopeFactory: Opens a ResolutionScope per delivered message
- RequestCallback: The callable a broker invokes for every delivery

Example:
    >>> class MyScopeFactory:
    ...     @asynccontextmanager
    ...     async def create_scope(self):
    ...         scope = MyScope()
    ...         try:
    ...             yield scope
    ...         finally:
    ...             await scope.close()
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from pydantic import BaseModel

    from requestworker.context import DeliveryMetadata

T = TypeVar("T")

# (payload, per-call state or None, metadata) -> ack?
RequestCallback = Callable[[Any, "BaseModel | None", "DeliveryMetadata"], Awaitable[bool]]


@runtime_checkable
class ResolutionScope(Protocol):
    """
    A dependency-resolution scope owned by exactly one invocation.

    Instances resolved from the same scope share scoped dependencies
    (database sessions, unit-of-work objects); nothing is shared across
    scopes.
    """

    def resolve(self, requested_type: type[T]) -> T:
        """
        Build or fetch an instance of ``requested_type``.

        Raises:
            ResolutionError: If the scope has no provider for the type
        """
        ...


@runtime_checkable
class ScopeFactory(Protocol):
    """
    Creates resolution scopes.

    ``create_scope()`` returns an async context manager; leaving it
    releases every scoped resource exactly once, whatever the exit path.
    """

    def create_scope(self) -> AbstractAsyncContextManager[ResolutionScope]:
        """Open a new scope."""
        ...


__all__ = [
    "RequestCallback",
    "ResolutionScope",
    "ScopeFactory",
]
