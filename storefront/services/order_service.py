"""
Order Service - Business Logic Layer
"""
import logging
import math
from typing import Optional

from starlette.concurrency import run_in_threadpool

from storefront.config import Settings, settings
from storefront.models.order import Order, OrderStatus, INITIAL_PAYMENT_STATUS
from storefront.publishers.event_publisher import EventPublisher
from storefront.repositories.order_repository import OrderRepository, OrderPersistenceError
from storefront.schemas.order import (
    OrderCreate,
    OrderResponse,
    OrderListResponse,
    OrderPlacedResponse,
    PaginationMetadata,
    UserOrdersResponse
)
from storefront.schemas.payment import BillingAddress, PaymentRequest
from storefront.services.payment_gateway import PaymentGatewayClient, GatewayConfigurationError

logger = logging.getLogger(__name__)


class OrderService:
    """Service layer for order business logic"""

    def __init__(
        self,
        repository: OrderRepository,
        gateway: PaymentGatewayClient,
        event_publisher: EventPublisher,
        config: Settings = settings
    ):
        self.repository = repository
        self.gateway = gateway
        self.event_publisher = event_publisher
        self.config = config

    def _payment_request(self, order: Order) -> PaymentRequest:
        """Build the gateway payload from the stored order"""
        if not self.config.PESAPAL_NOTIFICATION_ID:
            raise GatewayConfigurationError("Payment notification id is not set")

        return PaymentRequest(
            id=f"ORDER-{order.id}",
            currency=self.config.PAYMENT_CURRENCY,
            amount=order.total,
            description=f"Payment for order #{order.id}",
            callback_url=self.config.PAYMENT_CALLBACK_URL,
            notification_id=self.config.PESAPAL_NOTIFICATION_ID,
            billing_address=BillingAddress(
                email_address=order.email,
                phone_number=order.phone,
                country_code=self.config.PAYMENT_COUNTRY_CODE,
                first_name=order.first_name,
                last_name=order.last_name,
                city=order.delivery_location,
                line_1=order.delivery_location
            )
        )

    async def create_order(self, user_id: int, order_data: OrderCreate) -> OrderPlacedResponse:
        """
        Place an order and initiate its payment

        Steps:
        1. Save the order and its items in one transaction
        2. Publish OrderCreated event
        3. Obtain a gateway token and submit the payment request using the
           stored total
        4. Save the gateway tracking reference on the order
        5. Return the redirect URL for the customer

        If the gateway fails after step 1 the order stays saved without a
        tracking reference. Nothing rolls it back.

        Args:
            user_id: Id of the authenticated customer
            order_data: Validated order submission

        Returns:
            Redirect URL, order id and tracking reference

        Raises:
            OrderPersistenceError: If the order could not be saved
            PaymentGatewayError: If payment could not be initiated
        """
        # Step 1: Persist header and items atomically
        order_dict = {
            'user_id': user_id,
            'first_name': order_data.first_name,
            'last_name': order_data.last_name,
            'email': order_data.email,
            'phone': order_data.phone,
            'delivery_location': order_data.delivery_location,
            'total': order_data.items_total,
            'status': OrderStatus.PENDING.value,
            'payment_status': INITIAL_PAYMENT_STATUS
        }
        items = [item.model_dump() for item in order_data.order_items]

        order = self.repository.create(order_dict, items)
        logger.info(f"Order {order.id} saved with {len(order.items)} items, total {order.total}")

        # Step 2: Publish OrderCreated event (best effort)
        await run_in_threadpool(
            self.event_publisher.publish_order_created,
            OrderResponse.model_validate(order).model_dump(mode="json")
        )

        # Step 3: Initiate payment from the stored amount
        payment = self._payment_request(order)
        token = await self.gateway.request_access_token()
        result = await self.gateway.submit_payment_request(token, payment)

        # Step 4: Write back the tracking reference
        try:
            saved = self.repository.set_tracking_reference(
                order.id, result.order_tracking_id, INITIAL_PAYMENT_STATUS
            )
            if not saved:
                logger.error(
                    f"Order {order.id} already has a tracking reference, "
                    f"gateway tracking id {result.order_tracking_id} not saved"
                )
        except OrderPersistenceError:
            # Gateway already holds the request; needs manual reconciliation
            logger.error(
                f"Order {order.id} created, but tracking id not saved: {result.order_tracking_id}"
            )

        return OrderPlacedResponse(
            redirect_url=result.redirect_url,
            order_id=order.id,
            order_tracking_id=result.order_tracking_id
        )

    def get_order(self, order_id: int) -> Optional[OrderResponse]:
        """Get order by ID"""
        order = self.repository.get_by_id(order_id)
        if not order:
            return None
        return OrderResponse.model_validate(order)

    def list_orders(
        self,
        page: int = 1,
        limit: int = 15,
        sort: str = "desc",
        search: Optional[str] = None
    ) -> OrderListResponse:
        """Get one page of orders with pagination metadata"""
        orders, total = self.repository.list(page=page, page_size=limit, sort=sort, search=search)
        total_pages = math.ceil(total / limit)

        return OrderListResponse(
            orders=[OrderResponse.model_validate(o) for o in orders],
            metadata=PaginationMetadata(
                total=total,
                current_page=page,
                limit=limit,
                has_prev_page=page > 1,
                has_next_page=total_pages > page,
                previous_page=page - 1,
                next_page=page + 1
            )
        )

    def list_user_orders(self, user_id: int, sort: str = "desc", search: Optional[str] = None) -> UserOrdersResponse:
        """Get all orders placed by a user"""
        orders = self.repository.list_by_user(user_id, sort=sort, search=search)
        return UserOrdersResponse(orders=[OrderResponse.model_validate(o) for o in orders])

    async def update_order_status(self, order_id: int, new_status: OrderStatus) -> Optional[OrderResponse]:
        """
        Update order fulfillment status

        Returns:
            Updated order or None if not found
        """
        order = self.repository.get_by_id(order_id)
        if not order:
            return None
        old_status = order.status

        order = self.repository.update_status(order_id, new_status.value)
        if not order:
            return None
        logger.info(f"Order {order_id} status changed: {old_status} -> {order.status}")

        await run_in_threadpool(self.event_publisher.publish_order_status_changed, {
            'order_id': order.id,
            'old_status': old_status,
            'new_status': order.status,
            'updated_at': order.updated_at.isoformat()
        })

        return OrderResponse.model_validate(order)

    def delete_order(self, order_id: int) -> bool:
        """Delete order and its items"""
        deleted = self.repository.delete(order_id)
        if deleted:
            logger.info(f"Order {order_id} deleted")
        return deleted

    def count_undelivered_orders(self) -> int:
        """Count orders that are not completed"""
        return self.repository.count_undelivered()
