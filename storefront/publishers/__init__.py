"""
Publishers package
"""
from storefront.publishers.event_publisher import EventPublisher

__all__ = ["EventPublisher"]
