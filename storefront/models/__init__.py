"""
Models package
"""
from storefront.models.order import Order, OrderItem, OrderStatus

__all__ = ["Order", "OrderItem", "OrderStatus"]
