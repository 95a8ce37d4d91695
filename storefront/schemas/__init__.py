"""
Schemas package
"""
from storefront.schemas.order import (
    OrderItemCreate,
    OrderCreate,
    OrderStatusUpdate,
    OrderItemResponse,
    OrderResponse,
    PaginationMetadata,
    OrderListResponse,
    UserOrdersResponse,
    OrderPlacedResponse,
    UndeliveredOrdersResponse,
    MessageResponse
)
from storefront.schemas.payment import (
    BillingAddress,
    PaymentRequest,
    PaymentRequestResult,
    PaymentStatusResult,
    PaymentNotification,
    PaymentNotificationAck
)

__all__ = [
    "OrderItemCreate",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderItemResponse",
    "OrderResponse",
    "PaginationMetadata",
    "OrderListResponse",
    "UserOrdersResponse",
    "OrderPlacedResponse",
    "UndeliveredOrdersResponse",
    "MessageResponse",
    "BillingAddress",
    "PaymentRequest",
    "PaymentRequestResult",
    "PaymentStatusResult",
    "PaymentNotification",
    "PaymentNotificationAck"
]
