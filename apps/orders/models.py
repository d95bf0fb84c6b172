from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

class OrderStatus(str, Enum):
    """Order status enum."""
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"

class Customer(SQLModel, table=True):
    __tablename__ = "customers"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    email: Optional[str] = Field(default=None, max_length=320)

    orders: List["Order"] = Relationship(back_populates="customer")

class Order(SQLModel, table=True):
    """Order header; lines are owned and removed with the order."""
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: Optional[int] = Field(default=None, foreign_key="customers.id", index=True)
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Order status")
    note: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Created at")

    customer: Optional[Customer] = Relationship(back_populates="orders")
    lines: List["OrderLine"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def total_cents(self) -> int:
        return sum(line.quantity * line.unit_price_cents for line in self.lines)

class OrderLine(SQLModel, table=True):
    __tablename__ = "order_lines"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id", index=True)
    sku: str = Field(max_length=64)
    quantity: int = Field(default=1)
    unit_price_cents: int = Field(default=0)  # integer cents, no float money

    order: Optional[Order] = Relationship(back_populates="lines")
