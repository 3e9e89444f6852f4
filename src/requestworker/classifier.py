"""
Outcome classification for handler invocations.

Every invocation ends in one of three outcomes:

- COMPLETED: the handler returned normally
- REJECTED: the handler raised a recognized domain error (business-rule
  rejection). Logged at warning level and, by default, acknowledged:
  redelivering it would only fail the same way again.
- FAILED: anything else. Logged at error level and reported to the broker
  as not acknowledged, so its retry/dead-letter policy applies.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from requestworker.exceptions import DomainError

logger = logging.getLogger(__name__)


class InvocationOutcome(Enum):
    """Classified result of one handler invocation."""

    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


class ErrorClassifier:
    """
    Maps handler errors onto invocation outcomes and the broker's boolean.

    Args:
        recognized: Exception types treated as domain errors
        ack_on_domain_error: Acknowledge REJECTED invocations (default True).
            Set False to hand business-rule rejections to the broker's
            dead-letter policy instead of dropping them after logging.

    Example:
        >>> classifier = ErrorClassifier()
        >>> classifier.classify(DomainError("duplicate order"))
        <InvocationOutcome.REJECTED: 'rejected'>
        >>> classifier.acknowledges(InvocationOutcome.REJECTED)
        True
    """

    def __init__(
        self,
        recognized: tuple[type[BaseException], ...] = (DomainError,),
        *,
        ack_on_domain_error: bool = True,
    ) -> None:
        self._recognized = tuple(recognized)
        self._ack_on_domain_error = ack_on_domain_error

    @property
    def recognized(self) -> tuple[type[BaseException], ...]:
        return self._recognized

    def is_recognized(self, error: BaseException) -> bool:
        """Whether ``error`` is a recognized domain error."""
        return isinstance(error, self._recognized)

    def classify(self, error: BaseException | None) -> InvocationOutcome:
        """Classify an invocation by the error it raised, if any."""
        if error is None:
            return InvocationOutcome.COMPLETED
        if self.is_recognized(error):
            return InvocationOutcome.REJECTED
        return InvocationOutcome.FAILED

    def acknowledges(self, outcome: InvocationOutcome) -> bool:
        """The boolean handed back to the broker for ``outcome``."""
        if outcome is InvocationOutcome.COMPLETED:
            return True
        if outcome is InvocationOutcome.REJECTED:
            return self._ack_on_domain_error
        return False

    def report(
        self,
        error: BaseException,
        outcome: InvocationOutcome,
        extra: dict[str, Any],
    ) -> None:
        """Emit the single log entry that belongs to a non-completed outcome."""
        log_extra = {
            **extra,
            "outcome": outcome.value,
            "error": str(error),
            "error_type": type(error).__name__,
        }

        if outcome is InvocationOutcome.REJECTED:
            code = getattr(error, "code", None)
            if code is not None:
                log_extra["error_code"] = code
            logger.warning(
                f"Domain error in completing the request: {error}",
                exc_info=error,
                extra=log_extra,
            )
        else:
            logger.error(
                f"Failed to complete request due to unknown error: {error}",
                exc_info=error,
                extra=log_extra,
            )

    def __repr__(self) -> str:
        names = ", ".join(t.__name__ for t in self._recognized)
        return f"ErrorClassifier(recognized=({names}), ack_on_domain_error={self._ack_on_domain_error})"


__all__ = [
    "ErrorClassifier",
    "InvocationOutcome",
]
