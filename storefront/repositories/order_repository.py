"""
Order Repository - Data Access Layer
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import String, asc, cast, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.order import Order, OrderItem, OrderStatus, payment_status_can_change

logger = logging.getLogger(__name__)


class OrderPersistenceError(Exception):
    """A write could not be committed; the transaction was rolled back"""
    pass


class OrderRepository:
    """Repository for Order CRUD operations"""

    def __init__(self, db: Session):
        self.db = db

    def _ordered(self, query, sort: str):
        direction = asc if sort == "asc" else desc
        return query.order_by(direction(Order.created_at), direction(Order.id))

    def _search(self, query, search: Optional[str]):
        if search:
            query = query.filter(cast(Order.id, String).like(f"%{search}%"))
        return query

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise OrderPersistenceError(f"Failed to {action}") from e

    def create(self, order_data: dict, items: List[dict]) -> Order:
        """
        Create an order together with its items

        The header and every item are committed in one transaction. If any
        row fails to persist the whole order is rolled back.

        Args:
            order_data: Dictionary with order header fields
            items: List of dictionaries with item fields

        Returns:
            Created order

        Raises:
            OrderPersistenceError: If the transaction could not be committed
        """
        order = Order(**order_data)
        order.items = [OrderItem(**item) for item in items]
        self.db.add(order)
        self._commit("create order")
        self.db.refresh(order)
        return order

    def get_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID"""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def list(
        self,
        page: int = 1,
        page_size: int = 15,
        sort: str = "desc",
        search: Optional[str] = None
    ) -> Tuple[List[Order], int]:
        """
        Get one page of orders and the size of the whole matching set

        Args:
            page: 1-based page number
            page_size: Orders per page
            sort: "asc" or "desc" by creation time
            search: Substring matched against the order id
        """
        query = self._search(self.db.query(Order), search)
        total = query.count()
        orders = self._ordered(query, sort).offset((page - 1) * page_size).limit(page_size).all()
        return orders, total

    def list_by_user(self, user_id: int, sort: str = "desc", search: Optional[str] = None) -> List[Order]:
        """Get all orders placed by a user"""
        query = self._search(self.db.query(Order).filter(Order.user_id == user_id), search)
        return self._ordered(query, sort).all()

    def update_status(self, order_id: int, new_status: str) -> Optional[Order]:
        """Update order fulfillment status"""
        order = self.get_by_id(order_id)
        if not order:
            return None

        order.status = new_status
        self._commit("update order status")
        self.db.refresh(order)
        return order

    def set_tracking_reference(self, order_id: int, tracking_id: str, payment_status: str) -> bool:
        """
        Store the gateway tracking reference on an order

        Only orders without a reference are touched, a stored reference
        never changes.

        Returns:
            True if a row was updated
        """
        try:
            updated = self.db.query(Order).filter(
                Order.id == order_id,
                Order.tracking_id.is_(None)
            ).update(
                {Order.tracking_id: tracking_id, Order.payment_status: payment_status},
                synchronize_session="fetch"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save tracking reference: {e}")
            raise OrderPersistenceError("Failed to save tracking reference") from e

        self._commit("save tracking reference")
        return updated > 0

    def update_payment_status(self, tracking_id: str, new_status: str) -> int:
        """
        Mirror the gateway's payment status onto the matching order

        Returns:
            Number of orders updated; zero when no order carries the
            reference or the stored status is already settled

        Raises:
            OrderPersistenceError: If the orders could not be read or saved
        """
        updated = 0
        try:
            for order in self.db.query(Order).filter(Order.tracking_id == tracking_id).all():
                if not payment_status_can_change(order.payment_status, new_status):
                    logger.info(
                        f"Ignoring payment status {new_status!r} for order {order.id}, "
                        f"current status is {order.payment_status!r}"
                    )
                    continue
                order.payment_status = new_status
                updated += 1
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load orders for tracking id {tracking_id}: {e}")
            raise OrderPersistenceError("Failed to update payment status") from e

        if updated:
            self._commit("update payment status")
        return updated

    def delete(self, order_id: int) -> bool:
        """Delete order and its items"""
        order = self.get_by_id(order_id)
        if not order:
            return False

        self.db.delete(order)
        self._commit("delete order")
        return True

    def count_undelivered(self) -> int:
        """Count orders that are not completed yet"""
        return self.db.query(Order).filter(Order.status != OrderStatus.COMPLETED.value).count()
