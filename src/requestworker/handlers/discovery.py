"""
Capability discovery for background services.

A background service is any concrete class that derives from the capability
marker (``BackgroundService`` by default). Discovery walks the subclass tree
of the marker, so a service only has to be imported to be found.
"""

import inspect
import logging

logger = logging.getLogger(__name__)


class BackgroundService:
    """
    Capability marker for classes that expose @background_request handlers.

    Subclasses are resolved from a resolution scope once per delivered
    message, so they may take scoped dependencies in ``__init__``.
    """

    pass


def discover_types(marker: type = BackgroundService) -> list[type]:
    """
    Return every concrete class assignable to ``marker``.

    The marker itself and abstract classes are skipped; abstract
    intermediates are still descended into. Order is depth first in
    definition order, without duplicates (diamond inheritance).

    Args:
        marker: The capability base class

    Returns:
        List of concrete subclasses
    """
    found: list[type] = []
    seen: set[type] = set()
    pending = list(reversed(marker.__subclasses__()))

    while pending:
        candidate = pending.pop()
        if candidate in seen:
            continue
        seen.add(candidate)
        if not inspect.isabstract(candidate):
            found.append(candidate)
        pending.extend(reversed(candidate.__subclasses__()))

    logger.debug(
        "Discovered %d type(s) assignable to %s",
        len(found),
        marker.__name__,
        extra={"marker": marker.__name__, "types": [t.__name__ for t in found]},
    )
    return found


__all__ = [
    "BackgroundService",
    "discover_types",
]
