"""
Model registration for table creation: import every SQLModel table class here so
SQLModel.metadata knows about it before create_all() runs.
"""
from apps.orders.models import Customer, Order, OrderLine

__all__ = ["Customer", "Order", "OrderLine"]
