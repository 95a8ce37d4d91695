"""
Repositories package
"""
from storefront.repositories.order_repository import OrderRepository, OrderPersistenceError

__all__ = ["OrderRepository", "OrderPersistenceError"]
