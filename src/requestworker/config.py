"""Worker configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel

from requestworker.exceptions import DomainError


@dataclass
class WorkerConfig:
    """
    Configuration for a request worker.

    Attributes:
        ack_on_domain_error: Acknowledge messages whose handler raised a
            recognized domain error. True matches "log and consume";
            False lets the broker dead-letter them.
        recognized_errors: Exception types classified as domain errors.
        state_type: Per-call state model used when the broker delivers no
            state of its own. Defaults to the shared state's model.
        enable_tracing: Enable OpenTelemetry tracing if available.

    Example:
        >>> config = WorkerConfig(ack_on_domain_error=False)
        >>> config.recognized_errors
        (<class 'requestworker.exceptions.DomainError'>,)
    """

    ack_on_domain_error: bool = True
    recognized_errors: tuple[type[BaseException], ...] = field(
        default_factory=lambda: (DomainError,)
    )
    state_type: type[BaseModel] | None = None
    enable_tracing: bool = True


__all__ = ["WorkerConfig"]
