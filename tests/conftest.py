"""Test config and shared fixtures."""
import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from repokit.repository.unit_of_work import UnitOfWork
from apps.orders.models import Customer, Order, OrderLine, OrderStatus
from apps.orders.repository import register_repositories


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory engine with all tables."""
    # Import all models so they are registered in metadata
    import apps.models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> Callable[[], AsyncSession]:
    """Session factory bound to the test engine."""
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def uow(session_factory) -> AsyncGenerator[UnitOfWork, None]:
    """UnitOfWork with the order repositories registered."""
    unit_of_work = register_repositories(UnitOfWork(session_factory()))
    yield unit_of_work
    await unit_of_work.dispose()


@pytest.fixture
async def make_uow(session_factory):
    """Build extra UnitOfWorks (fresh identity map) on the same database."""
    created = []

    def _make() -> UnitOfWork:
        unit_of_work = register_repositories(UnitOfWork(session_factory()))
        created.append(unit_of_work)
        return unit_of_work

    yield _make

    for unit_of_work in created:
        await unit_of_work.dispose()


@pytest.fixture
def fresh_uow(make_uow) -> UnitOfWork:
    """A second UnitOfWork that has not loaded anything yet."""
    return make_uow()


@pytest.fixture
async def sample_orders(uow: UnitOfWork) -> dict:
    """
    Seed two customers and three orders.

    alice: order_a (PENDING, 2 lines), order_b (PAID, 1 line)
    bob:   order_c (PENDING, no lines)
    """
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    alice = Customer(name="alice", email="alice@example.com")
    bob = Customer(name="bob")

    order_a = Order(customer=alice, status=OrderStatus.PENDING, note="a", created_at=base_time)
    order_a.lines.append(OrderLine(sku="SKU-1", quantity=2, unit_price_cents=500))
    order_a.lines.append(OrderLine(sku="SKU-2", quantity=1, unit_price_cents=250))
    order_b = Order(customer=alice, status=OrderStatus.PAID, note="b", created_at=base_time + timedelta(hours=1))
    order_b.lines.append(OrderLine(sku="SKU-3", quantity=5, unit_price_cents=100))
    order_c = Order(customer=bob, status=OrderStatus.PENDING, note="c", created_at=base_time + timedelta(hours=2))

    orders = uow.get_repository("orders")
    for order in (order_a, order_b, order_c):
        await orders.insert(order)
    await uow.save()

    return {
        "alice": alice,
        "bob": bob,
        "order_a": order_a,
        "order_b": order_b,
        "order_c": order_c,
    }


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the UnitOfWork dependency bound to the test engine."""
    from main import app
    from apps.orders.api.router import get_uow

    async def _get_uow():
        async with register_repositories(UnitOfWork(session_factory())) as unit_of_work:
            yield unit_of_work

    app.dependency_overrides[get_uow] = _get_uow

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
