"""
Storefront order service: order placement and payment confirmation
"""
__version__ = "1.0.0"
