"""
Services package
"""
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGatewayClient
from storefront.services.payment_notification_service import PaymentNotificationService

__all__ = ["OrderService", "PaymentGatewayClient", "PaymentNotificationService"]
