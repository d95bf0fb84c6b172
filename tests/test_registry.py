"""Repository registry test cases (no database needed)."""
import pytest
from repokit.repository.base import BaseRepository
from repokit.repository.exceptions import (
    ConstructionError,
    DuplicateKeyError,
    NotRegisteredError,
    RepositoryError,
)
from repokit.repository.registry import RepositoryRegistry
from apps.orders.models import Order
from apps.orders.repository import OrderRepository


SESSION = object()
UNIT_OF_WORK = object()


def order_factory(session, unit_of_work):
    return BaseRepository(session, unit_of_work, Order)


@pytest.fixture
def registry() -> RepositoryRegistry:
    return RepositoryRegistry()


class TestRegister:
    """Test register()."""

    def test_register_then_get_returns_same_instance(self, registry: RepositoryRegistry):
        registry.register("orders", order_factory)

        first = registry.get("orders", SESSION, UNIT_OF_WORK)
        second = registry.get("orders", SESSION, UNIT_OF_WORK)

        assert first is second
        assert first.session is SESSION
        assert first.unit_of_work is UNIT_OF_WORK

    def test_repository_class_is_a_factory(self, registry: RepositoryRegistry):
        registry.register("orders", OrderRepository)

        repository = registry.get("orders", SESSION, UNIT_OF_WORK)

        assert isinstance(repository, OrderRepository)
        assert repository.model is Order

    def test_duplicate_key_fails(self, registry: RepositoryRegistry):
        registry.register("orders", order_factory)

        with pytest.raises(DuplicateKeyError):
            registry.register("orders", OrderRepository)
        # First registration is kept
        assert type(registry.get("orders", SESSION, UNIT_OF_WORK)) is BaseRepository

    def test_same_class_under_two_tags(self, registry: RepositoryRegistry):
        registry.register("orders", OrderRepository)
        registry.register("archived_orders", OrderRepository)

        assert registry.get("orders", SESSION, UNIT_OF_WORK) is not registry.get(
            "archived_orders", SESSION, UNIT_OF_WORK
        )

    def test_non_string_key_rejected(self, registry: RepositoryRegistry):
        with pytest.raises(TypeError):
            registry.register(OrderRepository, OrderRepository)

    def test_blank_key_rejected(self, registry: RepositoryRegistry):
        with pytest.raises(ValueError):
            registry.register("  ", OrderRepository)

    def test_non_callable_factory_rejected(self, registry: RepositoryRegistry):
        with pytest.raises(ConstructionError):
            registry.register("orders", "not a factory")
        assert "orders" not in registry

    @pytest.mark.parametrize(
        "factory",
        [
            lambda session: None,
            lambda session, unit_of_work, extra: None,
            BaseRepository,  # needs a model as third argument
        ],
    )
    def test_wrong_signature_rejected_at_registration(self, registry: RepositoryRegistry, factory):
        with pytest.raises(ConstructionError):
            registry.register("orders", factory)
        assert len(registry) == 0


class TestGet:
    """Test get()."""

    def test_unregistered_key_fails(self, registry: RepositoryRegistry):
        with pytest.raises(NotRegisteredError) as exc_info:
            registry.get("orders", SESSION, UNIT_OF_WORK)

        assert isinstance(exc_info.value, LookupError)
        assert isinstance(exc_info.value, RepositoryError)

    def test_factory_error_is_wrapped(self, registry: RepositoryRegistry):
        def broken(session, unit_of_work):
            raise RuntimeError("boom")

        registry.register("orders", broken)

        with pytest.raises(ConstructionError) as exc_info:
            registry.get("orders", SESSION, UNIT_OF_WORK)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not registry.is_constructed("orders")

    def test_factory_returning_non_repository_fails(self, registry: RepositoryRegistry):
        registry.register("orders", lambda session, unit_of_work: {"not": "a repository"})

        with pytest.raises(ConstructionError):
            registry.get("orders", SESSION, UNIT_OF_WORK)
        # Not cached: the next call fails the same way
        with pytest.raises(ConstructionError):
            registry.get("orders", SESSION, UNIT_OF_WORK)

    def test_construction_is_lazy(self, registry: RepositoryRegistry):
        calls = []

        def counting(session, unit_of_work):
            calls.append(1)
            return order_factory(session, unit_of_work)

        registry.register("orders", counting)
        assert calls == []

        registry.get("orders", SESSION, UNIT_OF_WORK)
        registry.get("orders", SESSION, UNIT_OF_WORK)
        assert calls == [1]

    def test_clear_drops_registrations_and_instances(self, registry: RepositoryRegistry):
        registry.register("orders", order_factory)
        registry.get("orders", SESSION, UNIT_OF_WORK)

        registry.clear()

        assert registry.keys() == []
        with pytest.raises(NotRegisteredError):
            registry.get("orders", SESSION, UNIT_OF_WORK)
