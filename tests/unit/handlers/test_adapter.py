"""Unit tests for uniform handler invocation."""

import asyncio

import pytest

from requestworker import DeliveryMetadata
from requestworker.context import InvocationContext
from requestworker.handlers import HandlerRegistry, build_arguments, background_request, invoke_handler
from tests.fixtures import Note, WorkerState


class Echo:
    """Handlers of every supported shape, each recording what it received."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    @background_request("echo.async", Note)
    async def on_async(self, message: Note) -> str:
        await asyncio.sleep(0)
        self.calls.append(("async", message))
        return "async"

    @background_request("echo.sync", Note)
    def on_sync(self, message: Note) -> str:
        self.calls.append(("sync", message))
        return "sync"

    @background_request("echo.context", Note)
    def on_context(self, context: InvocationContext, message: Note) -> str:
        self.calls.append(("context", context, message))
        return "context"

    @background_request("echo.deferred", Note)
    def on_deferred(self, message: Note):
        async def later() -> str:
            self.calls.append(("deferred", message))
            return "deferred"

        return later()


@pytest.fixture
def descriptors():
    registry = HandlerRegistry()
    registry.register_type(Echo)
    return {d.queue_name: d for d in registry}


def make_context(descriptor, payload) -> InvocationContext:
    return InvocationContext(
        payload=payload,
        state=WorkerState(),
        metadata=DeliveryMetadata(queue_name=descriptor.queue_name, message_type="Note"),
        descriptor=descriptor,
    )


class TestBuildArguments:
    def test_payload_only(self, descriptors):
        descriptor = descriptors["echo.sync"]
        context = make_context(descriptor, Note(entry="x"))

        assert build_arguments(descriptor, context) == (context.payload,)

    def test_context_and_payload(self, descriptors):
        descriptor = descriptors["echo.context"]
        context = make_context(descriptor, Note(entry="x"))

        assert build_arguments(descriptor, context) == (context, context.payload)


class TestInvokeHandler:
    """Tests for invoking descriptors on an instance."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("queue_name", ["echo.async", "echo.sync", "echo.context", "echo.deferred"])
    async def test_every_shape_runs_to_completion(self, descriptors, queue_name):
        """Async, sync, context-taking and awaitable-returning handlers all finish."""
        descriptor = descriptors[queue_name]
        instance = Echo()
        note = Note(entry=queue_name)

        result = await invoke_handler(descriptor, instance, make_context(descriptor, note))

        assert result == queue_name.split(".")[1]
        assert len(instance.calls) == 1
        assert instance.calls[0][-1] == note

    @pytest.mark.asyncio
    async def test_context_handler_gets_context(self, descriptors):
        descriptor = descriptors["echo.context"]
        instance = Echo()
        context = make_context(descriptor, Note(entry="x"))

        await invoke_handler(descriptor, instance, context)

        assert instance.calls[0][1] is context

    @pytest.mark.asyncio
    async def test_errors_propagate_unwrapped(self):
        class Failing:
            @background_request("fail", Note)
            async def on_note(self, message: Note) -> None:
                raise KeyError("missing")

        registry = HandlerRegistry()
        (descriptor,) = registry.register_type(Failing)

        with pytest.raises(KeyError, match="missing"):
            await invoke_handler(descriptor, Failing(), make_context(descriptor, Note(entry="x")))
