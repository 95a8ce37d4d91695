"""
Payment Notification Service - gateway webhook handling
"""
import logging

from starlette.concurrency import run_in_threadpool

from storefront.publishers.event_publisher import EventPublisher
from storefront.repositories.order_repository import OrderRepository, OrderPersistenceError
from storefront.schemas.payment import PaymentNotificationAck
from storefront.services.payment_gateway import PaymentGatewayClient

logger = logging.getLogger(__name__)


class PaymentNotificationService:
    """Reconciles stored payment status with the gateway"""

    def __init__(
        self,
        repository: OrderRepository,
        gateway: PaymentGatewayClient,
        event_publisher: EventPublisher
    ):
        self.repository = repository
        self.gateway = gateway
        self.event_publisher = event_publisher

    async def handle_notification(self, tracking_id: str, merchant_reference: str) -> PaymentNotificationAck:
        """
        Process one payment notification

        The status is always fetched from the gateway with a fresh token,
        the notification itself is only a trigger. An order that does not
        match the tracking reference is not an error.

        Args:
            tracking_id: Gateway tracking reference
            merchant_reference: Our reference sent with the payment request

        Returns:
            Acknowledgement expected by the gateway

        Raises:
            PaymentGatewayError: If the status could not be fetched; the
                gateway redelivers on a non-2xx response
        """
        logger.info(f"Payment notification received - tracking id: {tracking_id} | merchant ref: {merchant_reference}")

        token = await self.gateway.request_access_token()
        payment_status = await self.gateway.query_payment_status(token, tracking_id)
        status = payment_status.payment_status_description

        try:
            updated = self.repository.update_payment_status(tracking_id, status)
        except OrderPersistenceError:
            logger.error(f"Failed to update payment status {status!r} for tracking id {tracking_id}")
            updated = 0

        if updated:
            logger.info(f"Payment status for tracking id {tracking_id} updated to {status!r}")
            await run_in_threadpool(self.event_publisher.publish_payment_status_changed, {
                'tracking_id': tracking_id,
                'merchant_reference': merchant_reference,
                'payment_status': status,
                'confirmation_code': payment_status.confirmation_code
            })
        else:
            logger.info(f"No order updated for tracking id {tracking_id} (status {status!r})")

        return PaymentNotificationAck(
            orderTrackingId=tracking_id,
            orderMerchantReference=merchant_reference
        )
