"""
RabbitMQ Event Publisher
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict

import pika

from storefront.config import Settings, settings

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publisher for sending order events to RabbitMQ"""

    def __init__(self, config: Settings = settings):
        self.rabbitmq_url = config.RABBITMQ_URL
        self.exchange = config.RABBITMQ_EXCHANGE
        self.source = config.SERVICE_NAME
        self.enabled = config.EVENTS_ENABLED

    def _publish(self, event_type: str, routing_key: str, data: Dict) -> bool:
        """
        Publish one event to the topic exchange

        Publishing is best effort: failures are logged and reported through
        the return value, never raised.

        Returns:
            True if published successfully, False otherwise
        """
        if not self.enabled:
            logger.debug(f"Event publishing disabled, dropping {event_type}")
            return False

        event = {
            "event_type": event_type,
            "event_id": str(uuid.uuid4()),
            "event_version": "1.0",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": self.source,
            "data": data
        }

        try:
            connection = pika.BlockingConnection(
                pika.URLParameters(self.rabbitmq_url)
            )
            try:
                channel = connection.channel()
                channel.exchange_declare(
                    exchange=self.exchange,
                    exchange_type='topic',
                    durable=True
                )
                channel.confirm_delivery()
                channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=routing_key,
                    body=json.dumps(event, default=str),
                    properties=pika.BasicProperties(
                        delivery_mode=2,  # Persistent message
                        content_type='application/json',
                        correlation_id=event["event_id"]
                    )
                )
            finally:
                connection.close()
        except (pika.exceptions.AMQPError, ValueError) as e:
            logger.warning(f"Error publishing {event_type} event: {e}")
            return False

        logger.info(f"Event published: {event_type} (ID: {event['event_id']})")
        return True

    def publish_order_created(self, order_data: Dict) -> bool:
        """Publish OrderCreated event"""
        return self._publish("OrderCreated", "order.created", order_data)

    def publish_order_status_changed(self, order_data: Dict) -> bool:
        """Publish OrderStatusChanged event"""
        return self._publish("OrderStatusChanged", "order.status.changed", order_data)

    def publish_payment_status_changed(self, payment_data: Dict) -> bool:
        """Publish OrderPaymentStatusChanged event"""
        return self._publish("OrderPaymentStatusChanged", "order.payment.changed", payment_data)
