"""
Invocation pipeline for delivered requests.

For every delivered message the pipeline:

1. merges the current shared state into a fresh per-call state,
2. opens a resolution scope,
3. resolves the handler's owner type from that scope,
4. invokes the handler (awaiting it when it is async),
5. classifies the outcome and returns the broker's boolean.

The scope is released on every exit path before the outcome is logged, and
no ``Exception`` escapes ``invoke()``: the boolean is the only channel back
to the broker. Cancellation (``asyncio.CancelledError``) is not an outcome
and propagates once the scope has been released.

Example:
    >>> pipeline = InvocationPipeline(scope_factory, shared_state)
    >>> acked = await pipeline.invoke(descriptor, OrderCreated(id=7), None, metadata)
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from requestworker.classifier import ErrorClassifier, InvocationOutcome
from requestworker.context import DeliveryMetadata, InvocationContext
from requestworker.handlers.adapter import invoke_handler
from requestworker.handlers.registry import HandlerDescriptor
from requestworker.observability import Tracer, create_tracer
from requestworker.observability.attributes import ATTR_ACKNOWLEDGED, ATTR_ERROR_TYPE, ATTR_OUTCOME
from requestworker.state import SharedState, merge_state

if TYPE_CHECKING:
    from requestworker.protocols import RequestCallback, ScopeFactory


class InvocationPipeline:
    """
    Runs one isolated handler invocation per delivered message.

    The pipeline holds no per-message state of its own; everything an
    invocation touches is either read-only (descriptor, shared state
    snapshot) or exclusively owned by it (per-call state, scope), so any
    number of invocations may run concurrently.

    Args:
        scope_factory: Opens one resolution scope per invocation
        shared_state: Worker-wide state, read at call time
        classifier: Outcome classifier (default: DomainError is recognized)
        state_type: Per-call state model used when the broker passes none
        tracer: Optional custom Tracer instance
        enable_tracing: Create a tracer when none is given
    """

    def __init__(
        self,
        scope_factory: ScopeFactory,
        shared_state: SharedState[Any],
        *,
        classifier: ErrorClassifier | None = None,
        state_type: type[BaseModel] | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._scope_factory = scope_factory
        self._shared_state = shared_state
        self._classifier = classifier or ErrorClassifier()
        self._state_type = state_type
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    def callback_for(self, descriptor: HandlerDescriptor) -> RequestCallback:
        """
        Build the broker callback for one descriptor.

        The returned coroutine function has the broker-facing shape
        ``(payload, state, metadata) -> bool``.
        """

        async def on_request(
            payload: Any,
            state: BaseModel | None,
            metadata: DeliveryMetadata,
        ) -> bool:
            return await self.invoke(descriptor, payload, state, metadata)

        on_request.__qualname__ = f"on_request[{descriptor.handler_name}]"
        return on_request

    def merge_state(self, state: BaseModel | None) -> BaseModel:
        """
        Produce the per-call state for one invocation.

        Shared values win over broker-supplied ones for fields both models
        declare; see ``requestworker.state.merge_state``.
        """
        if state is not None:
            return merge_state(self._shared_state.snapshot(), type(state), state)
        target_type = self._state_type or self._shared_state.state_type
        return self._shared_state.merge_into(target_type)

    async def invoke(
        self,
        descriptor: HandlerDescriptor,
        payload: Any,
        state: BaseModel | None,
        metadata: DeliveryMetadata,
    ) -> bool:
        """
        Run the handler bound by ``descriptor`` for one message.

        Args:
            descriptor: The binding being served
            payload: The deserialized message
            state: Broker-supplied per-call state, or None
            metadata: Delivery metadata

        Returns:
            True if the broker should treat the message as consumed,
            False to let it apply its retry/dead-letter policy
        """
        _, acknowledged = await self._execute(descriptor, payload, state, metadata)
        return acknowledged

    async def run(
        self,
        descriptor: HandlerDescriptor,
        payload: Any,
        state: BaseModel | None,
        metadata: DeliveryMetadata,
    ) -> InvocationOutcome:
        """
        Like ``invoke()`` but return the classified outcome.

        Useful where the caller cares about REJECTED vs COMPLETED, which the
        broker boolean folds together.
        """
        outcome, _ = await self._execute(descriptor, payload, state, metadata)
        return outcome

    async def _execute(
        self,
        descriptor: HandlerDescriptor,
        payload: Any,
        state: BaseModel | None,
        metadata: DeliveryMetadata,
    ) -> tuple[InvocationOutcome, bool]:
        log_extra: dict[str, Any] = {
            **metadata.log_extra(),
            "handler": descriptor.handler_name,
        }
        error: Exception | None = None

        with self._tracer.invocation_span(descriptor, metadata) as span:
            try:
                per_call_state = self.merge_state(state)
                async with self._scope_factory.create_scope() as scope:
                    instance = scope.resolve(descriptor.owner_type)
                    if inspect.isawaitable(instance):
                        # async resources in the scope make providers return futures
                        instance = await instance
                    context = InvocationContext(
                        payload=payload,
                        state=per_call_state,
                        metadata=metadata,
                        descriptor=descriptor,
                    )
                    await invoke_handler(descriptor, instance, context)
            except Exception as e:
                error = e

            outcome = self._classifier.classify(error)
            acknowledged = self._classifier.acknowledges(outcome)

            if error is not None:
                self._classifier.report(error, outcome, log_extra)
                if span:
                    span.set_attribute(ATTR_ERROR_TYPE, type(error).__name__)
                    span.record_exception(error)

            if span:
                span.set_attribute(ATTR_OUTCOME, outcome.value)
                span.set_attribute(ATTR_ACKNOWLEDGED, acknowledged)

        return outcome, acknowledged


__all__ = ["InvocationPipeline"]
