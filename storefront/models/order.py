"""
SQLAlchemy Order and OrderItem models
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


class OrderStatus(str, enum.Enum):
    """Fulfillment status of an order"""
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Gateway statuses after which the payment is settled
TERMINAL_PAYMENT_STATUSES = frozenset({"COMPLETED", "FAILED", "REVERSED"})
INITIAL_PAYMENT_STATUS = "PENDING"


def payment_status_can_change(current: str, new: str) -> bool:
    """
    Whether a stored payment status may be replaced by a gateway report

    Settled statuses never regress. The gateway may still reverse a
    completed payment.
    """
    current, new = (current or "").upper(), (new or "").upper()
    if current == new:
        return False
    if current in TERMINAL_PAYMENT_STATUSES:
        return current == "COMPLETED" and new == "REVERSED"
    return True


class Order(Base):
    """Order database model"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    delivery_location = Column(String(255), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = Column(String(50), nullable=False, default=INITIAL_PAYMENT_STATUS)
    tracking_id = Column(String(100), nullable=True, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    # Constraints
    __table_args__ = (
        CheckConstraint('total >= 0', name='check_total_non_negative'),
        CheckConstraint(
            "status IN ('Pending', 'Processing', 'Completed', 'Cancelled')",
            name='check_status_valid'
        ),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, total={self.total}, status='{self.status}')>"


class OrderItem(Base):
    """Purchased line; name and price are snapshots taken at order time"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
        CheckConstraint('price >= 0', name='check_price_non_negative'),
    )

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
