"""
Pydantic schemas for request/response validation
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from storefront.models.order import OrderStatus


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys to the storefront frontend"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class OrderItemCreate(CamelModel):
    """Line item as submitted at checkout"""
    product_id: int = Field(..., gt=0, description="Product ID")
    name: str = Field(..., min_length=1, max_length=255, description="Product name at purchase time")
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Unit price at purchase time")
    quantity: int = Field(..., gt=0, description="Quantity to order")


class OrderCreate(CamelModel):
    """Schema for placing a new order"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    delivery_location: str = Field(..., min_length=1, max_length=255)
    total: Optional[Decimal] = Field(
        None, ge=0, max_digits=12, decimal_places=2,
        description="Order total; when given it must equal the sum of the items"
    )
    order_items: List[OrderItemCreate] = Field(..., min_length=1)

    @property
    def items_total(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.order_items), Decimal("0"))

    @model_validator(mode="after")
    def check_total(self) -> "OrderCreate":
        if self.total is not None and self.total != self.items_total:
            raise ValueError(
                f"Order total {self.total} does not match the sum of its items {self.items_total}"
            )
        return self


class OrderStatusUpdate(BaseModel):
    """Schema for updating order status"""
    status: OrderStatus = Field(..., description="Order status")


class OrderItemResponse(CamelModel):
    """Schema for order item response"""
    id: int
    product_id: int
    name: str
    price: Decimal
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(CamelModel):
    """Schema for order response"""
    id: int
    user_id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    delivery_location: str
    total: Decimal
    status: str
    payment_status: str
    tracking_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    order_items: List[OrderItemResponse] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "orderItems", "order_items"),
        serialization_alias="orderItems",
    )

    model_config = ConfigDict(from_attributes=True)


class PaginationMetadata(CamelModel):
    """Pagination details for order listings"""
    total: int
    current_page: int
    limit: int
    has_prev_page: bool
    has_next_page: bool
    previous_page: int
    next_page: int


class OrderListResponse(BaseModel):
    """Schema for a page of orders"""
    orders: List[OrderResponse]
    metadata: PaginationMetadata


class UserOrdersResponse(BaseModel):
    """Schema for orders placed by one user"""
    orders: List[OrderResponse]


class OrderPlacedResponse(BaseModel):
    """Returned once the gateway accepted the payment request"""
    message: str = "Order created successfully. Redirect user to payment."
    redirect_url: str
    order_id: int
    order_tracking_id: str


class UndeliveredOrdersResponse(BaseModel):
    """Schema for undelivered order count"""
    undeliveredOrderCount: int


class MessageResponse(BaseModel):
    message: str
