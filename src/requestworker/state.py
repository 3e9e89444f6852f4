"""
Shared worker state and per-call state merging.

A worker process owns one ``SharedState`` for its lifetime. External code
(a config watcher, an admin endpoint, a token refresher) writes to it; every
invocation reads it through ``merge_state()``, which produces a private,
deep-copied per-call model from the values current at call time.

Example:
    >>> class WorkerState(BaseModel):
    ...     tenant: str = "default"
    ...     feature_flags: dict[str, bool] = {}
    >>>
    >>> shared = SharedState(WorkerState())
    >>> shared.update(tenant="acme")
    >>> per_call = shared.merge_into(WorkerState)
    >>> per_call.tenant
    'acme'
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

TState = TypeVar("TState", bound=BaseModel)
TTarget = TypeVar("TTarget", bound=BaseModel)


class SharedState(Generic[TState]):
    """
    Thread-safe holder of the worker-wide state model.

    Writers replace the held model rather than mutating it in place, so a
    reader holding the lock always copies a consistent value.

    Thread Safety:
        ``update``, ``replace``, ``get`` and ``snapshot`` serialize on an
        internal re-entrant lock; callers need no locking of their own.
    """

    def __init__(self, initial: TState) -> None:
        self._value = initial
        self._lock = threading.RLock()
        self._version = 0

    @property
    def state_type(self) -> type[TState]:
        """The pydantic model class of the held state."""
        return type(self._value)

    @property
    def version(self) -> int:
        """Number of writes since creation."""
        with self._lock:
            return self._version

    def get(self, name: str) -> Any:
        """Read one field of the current state."""
        with self._lock:
            return getattr(self._value, name)

    def update(self, **changes: Any) -> None:
        """
        Set one or more fields, validating them against the state model.

        Raises:
            pydantic.ValidationError: If a value doesn't fit the model
            AttributeError: If a field doesn't exist on the model
        """
        with self._lock:
            unknown = set(changes) - set(type(self._value).model_fields)
            if unknown:
                raise AttributeError(
                    f"{type(self._value).__name__} has no field(s): {', '.join(sorted(unknown))}"
                )
            state_type = type(self._value)
            updated = self._value.model_copy(update=changes)
            self._value = state_type.model_validate(
                _field_values(updated, state_type.model_fields), by_name=True
            )
            self._version += 1
            version = self._version

        logger.debug(
            "Shared state updated: %s",
            ", ".join(sorted(changes)),
            extra={"fields": sorted(changes), "version": version},
        )

    def replace(self, value: TState) -> None:
        """Swap in a whole new state model."""
        with self._lock:
            self._value = value
            self._version += 1

    def snapshot(self) -> TState:
        """Deep copy of the current state."""
        with self._lock:
            return self._value.model_copy(deep=True)

    def merge_into(
        self,
        target_type: type[TTarget],
        base: TTarget | None = None,
    ) -> TTarget:
        """
        Build a fresh ``target_type`` instance from the current shared values.

        See ``merge_state``.
        """
        return merge_state(self.snapshot(), target_type, base)

    def __repr__(self) -> str:
        with self._lock:
            return f"SharedState({type(self._value).__name__}, version={self._version})"


def merge_state(
    source: BaseModel,
    target_type: type[TTarget],
    base: TTarget | None = None,
) -> TTarget:
    """
    Copy same-named fields of ``source`` into a new ``target_type`` instance.

    Only fields declared on ``target_type`` are copied. Fields that exist only
    on the target keep the value from ``base`` (the broker-supplied per-call
    state) or their defaults. ``source`` and ``base`` are never mutated, and
    the result shares no mutable objects with either.

    Args:
        source: The shared state snapshot
        target_type: Model class of the per-call state
        base: Optional existing per-call state to overlay onto

    Returns:
        A new, validated ``target_type`` instance
    """
    target_fields = target_type.model_fields
    data: dict[str, Any] = {}
    if base is not None:
        data.update(_field_values(base, target_fields))
    data.update(_field_values(source, target_fields))

    # validated values may still be the source's own objects
    merged = target_type.model_validate(data, by_name=True)
    return merged.model_copy(deep=True)


def _field_values(model: BaseModel, names: Iterable[str]) -> dict[str, Any]:
    """
    Read the named fields off ``model`` by attribute.

    Attribute access keeps fields that serialization would drop or rename
    (``exclude=True``, aliases).
    """
    declared = type(model).model_fields
    return {name: getattr(model, name) for name in names if name in declared}


__all__ = [
    "SharedState",
    "merge_state",
]
