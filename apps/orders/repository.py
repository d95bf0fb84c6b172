"""Order module repository implementations."""

from typing import Optional, List
from sqlalchemy import and_
from repokit.repository.base import BaseRepository
from repokit.repository.unit_of_work import UnitOfWork
from .models import Customer, Order, OrderStatus


class CustomerRepository(BaseRepository[Customer]):
    """Customer repository."""

    repository_key = "customers"

    def __init__(self, session, unit_of_work):
        super().__init__(session, unit_of_work, Customer)

    async def get_by_name(self, name: str) -> Optional[Customer]:
        """Find customer by name."""
        return await self.find_one(Customer.name == name)


class OrderRepository(BaseRepository[Order]):
    """Order repository."""

    repository_key = "orders"

    def __init__(self, session, unit_of_work):
        super().__init__(session, unit_of_work, Order)

    @property
    def customers(self) -> CustomerRepository:
        """Sibling customer repository from the same unit of work."""
        return self.unit_of_work.get_repository(CustomerRepository.repository_key)

    async def get_with_lines(self, order_id: int) -> Optional[Order]:
        """Get order by id with its lines and customer loaded."""
        return await self.find_one(Order.id == order_id, include="lines,customer")

    async def list_by_customer(
        self,
        customer_id: int,
        status: Optional[OrderStatus] = None
    ) -> List[Order]:
        """List a customer's orders (newest first), optionally by status."""
        where = Order.customer_id == customer_id
        if status:
            where = and_(where, Order.status == status)
        return await self.find(where=where, order_by=Order.created_at.desc(), include="lines,customer")

    async def list_by_customer_name(
        self,
        name: str,
        status: Optional[OrderStatus] = None
    ) -> List[Order]:
        """List orders for the customer with this name; empty if unknown."""
        customer = await self.customers.get_by_name(name)
        if customer is None:
            return []
        return await self.list_by_customer(customer.id, status)


def register_repositories(uow: UnitOfWork) -> UnitOfWork:
    """Register the order module's repositories on a unit of work."""
    uow.add_repository(CustomerRepository)
    uow.add_repository(OrderRepository)
    return uow
