from typing import AsyncGenerator, List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from repokit.repository.unit_of_work import UnitOfWork
from repokit.response import ResponseModel
from ..models import Order, OrderStatus
from ..repository import register_repositories
from ..service import OrderService

router = APIRouter()

class OrderLineSchema(BaseModel):
    sku: str = Field(min_length=1, max_length=64)
    quantity: int = 1
    unit_price_cents: int = Field(default=0, ge=0)

class OrderCreateSchema(BaseModel):
    customer_name: str = Field(min_length=1)
    note: Optional[str] = None
    lines: List[OrderLineSchema]

class OrderUpdateSchema(BaseModel):
    status: Optional[OrderStatus] = None
    note: Optional[str] = None

async def get_uow() -> AsyncGenerator[UnitOfWork, None]:
    """Dependency: one UnitOfWork per request, disposed when the request ends."""
    async with register_repositories(UnitOfWork.create()) as uow:
        yield uow

def get_order_service(uow: UnitOfWork = Depends(get_uow)) -> OrderService:
    """Dependency: create OrderService."""
    return OrderService(uow)

def order_to_dict(order: Order) -> dict:
    data = order.model_dump()
    data["status"] = order.status.value
    data["customer_name"] = order.customer.name if order.customer else None
    data["lines"] = [line.model_dump(exclude={"order_id"}) for line in order.lines]
    data["total_cents"] = order.total_cents
    return data

@router.post("")
async def create_order(
    data: OrderCreateSchema,
    service: OrderService = Depends(get_order_service)
):
    """Place a new order."""
    order = await service.place_order(
        data.customer_name,
        [line.model_dump() for line in data.lines],
        note=data.note
    )
    return ResponseModel.success(data=order_to_dict(order))

@router.get("")
async def list_orders(
    customer_name: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    service: OrderService = Depends(get_order_service)
):
    """List orders, optionally for one customer and/or status."""
    orders = await service.list_orders(customer_name=customer_name, status=status)
    return ResponseModel.success(data=[order_to_dict(order) for order in orders])

@router.get("/{order_id}")
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service)
):
    """Get one order with its lines."""
    order = await service.get_order(order_id)
    return ResponseModel.success(data=order_to_dict(order))

@router.put("/{order_id}")
async def update_order(
    order_id: int,
    data: OrderUpdateSchema,
    service: OrderService = Depends(get_order_service)
):
    """Change order status and/or note."""
    order = await service.update_order(order_id, status=data.status, note=data.note)
    return ResponseModel.success(data=order_to_dict(order))

@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    service: OrderService = Depends(get_order_service)
):
    """Delete an order and its lines."""
    await service.delete_order(order_id)
    return ResponseModel.success(data={"id": order_id})
