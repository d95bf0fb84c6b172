from typing import Dict, List, Optional
from loguru import logger
from repokit.exceptions.handler import BusinessException
from repokit.repository.unit_of_work import UnitOfWork
from .models import Customer, Order, OrderLine, OrderStatus
from .repository import CustomerRepository, OrderRepository

class OrderService:
    def __init__(self, uow: UnitOfWork):
        """Initialize Order Service with UnitOfWork (repositories already registered)."""
        self.uow = uow

    @property
    def orders(self) -> OrderRepository:
        return self.uow.get_repository(OrderRepository.repository_key)

    @property
    def customers(self) -> CustomerRepository:
        return self.uow.get_repository(CustomerRepository.repository_key)

    async def place_order(self, customer_name: str, lines: List[Dict], note: Optional[str] = None) -> Order:
        """Create an order (and its customer on first purchase) in one save."""
        if not lines:
            raise BusinessException("Order must have at least one line", code=400)

        customer = await self.customers.get_by_name(customer_name)
        if customer is None:
            customer = await self.customers.insert(Customer(name=customer_name))

        order = Order(note=note)
        order.customer = customer
        for line in lines:
            if line["quantity"] <= 0:
                raise BusinessException(f"Invalid quantity for {line['sku']}", code=400)
            order.lines.append(OrderLine(**line))

        await self.orders.insert(order)
        affected = await self.uow.save()
        logger.info(f"Order {order.id} placed for {customer_name} ({affected} rows written)")
        return order

    async def get_order(self, order_id: int) -> Order:
        order = await self.orders.get_with_lines(order_id)
        if order is None:
            raise BusinessException("Order not found", code=404)
        return order

    async def list_orders(
        self,
        customer_name: Optional[str] = None,
        status: Optional[OrderStatus] = None
    ) -> List[Order]:
        if customer_name:
            return await self.orders.list_by_customer_name(customer_name, status)
        where = Order.status == status if status else None
        return await self.orders.find(where=where, order_by=Order.id, include="lines,customer")

    async def update_order(
        self,
        order_id: int,
        status: Optional[OrderStatus] = None,
        note: Optional[str] = None
    ) -> Order:
        order = await self.get_order(order_id)
        if order.status == OrderStatus.CANCELLED:
            raise BusinessException("Cancelled orders cannot be changed", code=409)
        if status is not None:
            order.status = status
        if note is not None:
            order.note = note

        order = await self.orders.update(order)
        await self.uow.save()
        logger.info(f"Order {order_id} updated (status={order.status.value})")
        return order

    async def delete_order(self, order_id: int) -> None:
        if not await self.orders.exists(Order.id == order_id):
            raise BusinessException("Order not found", code=404)
        await self.orders.delete_by_id(order_id)
        await self.uow.save()
        logger.info(f"Order {order_id} deleted")
