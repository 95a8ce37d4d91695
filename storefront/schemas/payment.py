"""
Payment gateway wire schemas and webhook payloads

Gateway responses are decoded into these models; a missing or mistyped
field fails validation instead of being coerced.
"""
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class GatewayModel(BaseModel):
    """Gateway responses carry fields we do not use"""
    model_config = ConfigDict(extra="ignore")


class TokenRequest(BaseModel):
    consumer_key: str
    consumer_secret: str


class TokenResponse(GatewayModel):
    token: str = Field(..., min_length=1)
    expiryDate: Optional[str] = None


class BillingAddress(BaseModel):
    email_address: str
    phone_number: str
    country_code: str
    first_name: str
    last_name: str
    city: str
    line_1: str


class PaymentRequest(BaseModel):
    """Body of a SubmitOrderRequest call"""
    id: str
    currency: str
    amount: Decimal
    description: str
    callback_url: str
    notification_id: str
    billing_address: BillingAddress

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        # The gateway expects a JSON number
        return float(amount)


class PaymentRequestResult(GatewayModel):
    order_tracking_id: str = Field(..., min_length=1)
    redirect_url: str = Field(..., min_length=1)
    merchant_reference: Optional[str] = None


class PaymentStatusResult(GatewayModel):
    payment_status_description: str = Field(..., min_length=1)
    payment_method: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    confirmation_code: Optional[str] = None
    merchant_reference: Optional[str] = None
    status_code: Optional[int] = None


def gateway_error(body: Any) -> Optional[Any]:
    """
    Return the error object of a gateway response, if it reports one

    Successful responses may still carry an ``error`` object whose fields
    are all null.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error if any(value is not None for value in error.values()) else None
    return error or None


class PaymentNotification(BaseModel):
    """Instant payment notification sent by the gateway"""
    OrderTrackingId: Optional[str] = None
    OrderMerchantReference: Optional[str] = None
    OrderNotificationType: Optional[str] = None


class PaymentNotificationAck(BaseModel):
    """Acknowledgement body the gateway expects from the webhook"""
    orderNotificationType: str = "IPNCHANGE"
    orderTrackingId: str
    orderMerchantReference: str
    status: int = 200
