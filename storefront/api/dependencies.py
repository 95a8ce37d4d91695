"""
Dependency providers wiring repositories, clients and services per request
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.publishers.event_publisher import EventPublisher
from storefront.repositories.order_repository import OrderRepository
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGatewayClient
from storefront.services.payment_notification_service import PaymentNotificationService


def get_order_repository(db: Session = Depends(get_db)) -> OrderRepository:
    return OrderRepository(db)


def get_payment_gateway() -> PaymentGatewayClient:
    return PaymentGatewayClient()


def get_event_publisher() -> EventPublisher:
    return EventPublisher()


def get_order_service(
    repository: OrderRepository = Depends(get_order_repository),
    gateway: PaymentGatewayClient = Depends(get_payment_gateway),
    event_publisher: EventPublisher = Depends(get_event_publisher)
) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(repository, gateway, event_publisher)


def get_payment_notification_service(
    repository: OrderRepository = Depends(get_order_repository),
    gateway: PaymentGatewayClient = Depends(get_payment_gateway),
    event_publisher: EventPublisher = Depends(get_event_publisher)
) -> PaymentNotificationService:
    """Dependency to get PaymentNotificationService instance"""
    return PaymentNotificationService(repository, gateway, event_publisher)
