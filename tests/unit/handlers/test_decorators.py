"""Unit tests for the @background_request decorator."""

import pytest

from requestworker.exceptions import MarkerMetadataError, RegistrationError
from requestworker.handlers import (
    RequestBinding,
    background_request,
    get_request_binding,
    is_background_request,
)
from tests.fixtures import OrderCreated, OrderService


class TestBackgroundRequestDecorator:
    """Tests for attaching binding metadata."""

    def test_attaches_binding(self):
        """The decorator should attach queue name and message type."""

        @background_request("orders.created", OrderCreated)
        async def handler(self, message):
            pass

        binding = get_request_binding(handler)
        assert binding == RequestBinding(queue_name="orders.created", message_type=OrderCreated)

    def test_returns_function_unchanged(self):
        """The decorated function should be the same object."""

        async def handler(self, message):
            pass

        decorated = background_request("orders.created", OrderCreated)(handler)

        assert decorated is handler

    def test_works_on_sync_functions(self):
        """Synchronous functions can be marked as well."""

        @background_request("orders.created", OrderCreated)
        def handler(self, message):
            pass

        assert is_background_request(handler)

    def test_binding_is_frozen(self):
        """Binding metadata should be immutable."""
        binding = RequestBinding(queue_name="orders.created", message_type=OrderCreated)

        with pytest.raises(AttributeError):
            binding.queue_name = "other"  # type: ignore[misc]

    def test_fixture_service_methods_are_marked(self):
        """Methods declared with the decorator on a class keep their binding."""
        binding = get_request_binding(OrderService.on_order_created)

        assert binding is not None
        assert binding.queue_name == "orders.created"
        assert binding.message_type is OrderCreated


class TestBackgroundRequestValidation:
    """Tests for malformed marker metadata."""

    @pytest.mark.parametrize("queue_name", ["", "   ", None, 42])
    def test_rejects_unusable_queue_name(self, queue_name):
        """Empty or non-string queue names are refused when decorating."""
        with pytest.raises(MarkerMetadataError, match="non-empty queue name"):
            background_request(queue_name, OrderCreated)  # type: ignore[arg-type]

    def test_rejects_non_class_message_type(self):
        """The message type must be a class."""
        with pytest.raises(MarkerMetadataError, match="needs a message class"):
            background_request("orders.created", "OrderCreated")  # type: ignore[arg-type]

    def test_marker_error_is_registration_error(self):
        """Marker errors are startup registration failures."""
        assert issubclass(MarkerMetadataError, RegistrationError)


class TestBindingHelpers:
    """Tests for get_request_binding and is_background_request."""

    def test_undecorated_function(self):
        """Undecorated functions have no binding."""

        def plain(self, message):
            pass

        assert get_request_binding(plain) is None
        assert is_background_request(plain) is False

    def test_ignores_foreign_attribute_values(self):
        """An unrelated value under the attribute name is not a binding."""

        def impostor(self, message):
            pass

        impostor._background_request = ("orders.created", OrderCreated)  # type: ignore[attr-defined]

        assert get_request_binding(impostor) is None
