"""
Resolution scopes backed by dependency_injector containers.

A scope is a fresh instance of a declarative container class. Because
instantiating a declarative container copies its providers, every
``providers.Singleton`` in that class lives exactly as long as one
invocation: a scoped lifetime. App-wide singletons belong in a root
container that the scoped container receives through a
``providers.DependenciesContainer``.

Example:
    >>> class AppContainer(containers.DeclarativeContainer):
    ...     engine = providers.Singleton(create_engine, "sqlite://")
    >>>
    >>> class RequestContainer(containers.DeclarativeContainer):
    ...     app = providers.DependenciesContainer()
    ...     session = providers.Resource(open_session, engine=app.engine)
    ...     orders = providers.Factory(OrderService, session=session)
    >>>
    >>> factory = ContainerScopeFactory(RequestContainer, app=AppContainer())
    >>> async with factory.create_scope() as scope:
    ...     service = scope.resolve(OrderService)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from dependency_injector import containers, providers

from requestworker.exceptions import ResolutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContainerScope:
    """
    A resolution scope over one container instance.

    ``resolve(SomeType)`` calls the provider whose ``provides`` is
    ``SomeType``, or failing that the single provider that provides a
    subclass of it.
    """

    def __init__(self, container: containers.Container) -> None:
        self._container = container
        self._released = False

    @property
    def container(self) -> containers.Container:
        return self._container

    @property
    def released(self) -> bool:
        return self._released

    def resolve(self, requested_type: type[T]) -> T:
        if self._released:
            raise ResolutionError(requested_type, "scope has already been released")
        provider = self._find_provider(requested_type)
        return provider()  # type: ignore[no-any-return]

    def _find_provider(self, requested_type: type) -> providers.Provider[Any]:
        exact: list[str] = []
        assignable: list[str] = []
        container_providers = self._container.providers

        for name, provider in container_providers.items():
            # DependenciesContainer answers any attribute with a placeholder
            if isinstance(provider, (providers.DependenciesContainer, providers.Container)):
                continue
            provides = getattr(provider, "provides", None)
            if not isinstance(provides, type):
                continue
            if provides is requested_type:
                exact.append(name)
            elif issubclass(provides, requested_type):
                assignable.append(name)

        candidates = exact or assignable
        if not candidates:
            raise ResolutionError(requested_type, "no provider in scope provides it")
        if len(candidates) > 1:
            raise ResolutionError(
                requested_type,
                f"ambiguous providers: {', '.join(sorted(candidates))}",
            )
        return container_providers[candidates[0]]  # type: ignore[no-any-return]

    async def release(self) -> None:
        """Shut down scoped resources and drop scoped singletons. Idempotent."""
        if self._released:
            return
        self._released = True

        result = self._container.shutdown_resources()
        if inspect.isawaitable(result):
            await result
        self._container.reset_singletons()


class ContainerScopeFactory:
    """
    Creates one ``ContainerScope`` per invocation.

    Args:
        container_class: Declarative container class instantiated per scope
        **dependencies: Overriding providers or containers passed to every
            instantiation (typically the root container for a
            ``DependenciesContainer``)
    """

    def __init__(
        self,
        container_class: type[containers.DeclarativeContainer],
        **dependencies: Any,
    ) -> None:
        self._container_class = container_class
        self._dependencies = dependencies
        self._open_scopes = 0

    @property
    def open_scopes(self) -> int:
        """Scopes currently acquired and not yet released."""
        return self._open_scopes

    @asynccontextmanager
    async def create_scope(self) -> AsyncIterator[ContainerScope]:
        scope = ContainerScope(self._container_class(**self._dependencies))
        self._open_scopes += 1
        logger.debug(
            "Opened resolution scope",
            extra={"container": self._container_class.__name__, "open_scopes": self._open_scopes},
        )
        try:
            yield scope
        finally:
            self._open_scopes -= 1
            await scope.release()
            logger.debug(
                "Released resolution scope",
                extra={
                    "container": self._container_class.__name__,
                    "open_scopes": self._open_scopes,
                },
            )


__all__ = [
    "ContainerScope",
    "ContainerScopeFactory",
]
