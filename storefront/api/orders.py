"""
Order API endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query

from storefront.api.dependencies import get_order_service
from storefront.repositories.order_repository import OrderPersistenceError
from storefront.security import UserClaims, get_current_user, require_admin
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import (
    PaymentGatewayError,
    GatewayConfigurationError,
    GatewayAuthenticationError
)
from storefront.schemas.order import (
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderListResponse,
    OrderPlacedResponse,
    UserOrdersResponse,
    UndeliveredOrdersResponse,
    MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


def normalize_sort(sort: str) -> str:
    return "asc" if sort == "asc" else "desc"


def order_not_found(order_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Order with id={order_id} not found"
    )


@router.post("/order", response_model=OrderPlacedResponse, summary="Place order")
async def create_order(
    order_data: OrderCreate,
    claims: UserClaims = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Place an order and start its payment

    Process:
    1. Save order and items in one transaction
    2. Request payment from the gateway for the stored total
    3. Save the gateway tracking id on the order
    4. Return the URL the customer is redirected to for payment
    """
    try:
        return await service.create_order(claims.user_id, order_data)
    except OrderPersistenceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save order"
        )
    except GatewayConfigurationError as e:
        logger.error(f"Payment configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing payment configuration"
        )
    except GatewayAuthenticationError as e:
        logger.error(f"Payment gateway authentication failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment authentication failed"
        )
    except PaymentGatewayError as e:
        logger.error(f"Payment initiation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to initiate payment"
        )


@router.get("/order", response_model=OrderListResponse, summary="Get all orders")
def get_orders(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(15, ge=1, le=100, description="Orders per page"),
    sort: str = Query("desc", description="Sort by creation time: asc or desc"),
    search: Optional[str] = Query(None, description="Substring of the order id"),
    _: UserClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve orders with pagination

    - **page**: Page number (default: 1)
    - **limit**: Orders per page (default: 15, max: 100)
    - **sort**: asc or desc (default: desc)
    - **search**: Match orders whose id contains this value
    """
    return service.list_orders(page=page, limit=limit, sort=normalize_sort(sort), search=search)


@router.get("/orders/undelivered", response_model=UndeliveredOrdersResponse, summary="Count undelivered orders")
def get_undelivered_orders(
    _: UserClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """Count orders that are not completed"""
    return UndeliveredOrdersResponse(undeliveredOrderCount=service.count_undelivered_orders())


@router.get("/user/{user_id}/orders", response_model=UserOrdersResponse, summary="Get orders by customer")
def get_user_orders(
    user_id: int,
    sort: str = Query("desc", description="Sort by creation time: asc or desc"),
    search: Optional[str] = Query(None, description="Substring of the order id"),
    claims: UserClaims = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Get all orders placed by a customer

    Customers can only read their own orders.
    """
    if not claims.can_access_user(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view these orders"
        )
    return service.list_user_orders(user_id, sort=normalize_sort(sort), search=search)


@router.get("/order/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(
    order_id: int,
    _: UserClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve a specific order by ID

    - **order_id**: Order ID
    """
    order = service.get_order(order_id)
    if not order:
        raise order_not_found(order_id)
    return order


@router.patch("/order/{order_id}", response_model=OrderResponse, summary="Update order status")
async def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    _: UserClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Update order status

    - **order_id**: Order ID
    - **status**: New status (Pending, Processing, Completed, Cancelled)
    """
    try:
        order = await service.update_order_status(order_id, status_data.status)
    except OrderPersistenceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status"
        )
    if not order:
        raise order_not_found(order_id)
    return order


@router.delete("/order/{order_id}", response_model=MessageResponse, summary="Delete order")
def delete_order(
    order_id: int,
    _: UserClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """
    Delete an order and its items

    - **order_id**: Order ID
    """
    try:
        deleted = service.delete_order(order_id)
    except OrderPersistenceError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete order"
        )
    if not deleted:
        raise order_not_found(order_id)
    return MessageResponse(message="Order deleted successfully.")
