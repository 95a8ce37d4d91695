"""
HTTP Client for the Pesapal payment gateway
"""
import logging
from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from storefront.config import Settings, settings
from storefront.schemas.payment import (
    TokenRequest,
    TokenResponse,
    PaymentRequest,
    PaymentRequestResult,
    PaymentStatusResult,
    gateway_error
)

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class PaymentGatewayError(Exception):
    """Base exception for payment gateway errors"""
    pass


class GatewayConfigurationError(PaymentGatewayError):
    """Credentials or notification channel missing from configuration"""
    pass


class GatewayAuthenticationError(PaymentGatewayError):
    """Access token could not be obtained"""
    pass


class GatewayResponseError(PaymentGatewayError):
    """Gateway call failed or returned an unusable response"""
    pass


class PaymentGatewayClient:
    """
    Client for the payment gateway

    Every call is a single attempt bounded by the configured timeout.
    Failures are raised to the caller, nothing is retried here.
    """

    def __init__(self, config: Settings = settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = config.PESAPAL_BASE_URL.rstrip("/")
        self.consumer_key = config.PESAPAL_CONSUMER_KEY
        self.consumer_secret = config.PESAPAL_CONSUMER_SECRET
        self.timeout = config.PAYMENT_GATEWAY_TIMEOUT
        self.transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[PaymentGatewayError],
        token: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Error calling payment gateway {path}: {e}")
            raise error_cls(f"Payment gateway unavailable: {e}") from e

    def _decode(
        self,
        response: httpx.Response,
        model: Type[ResponseModel],
        error_cls: Type[PaymentGatewayError],
        action: str
    ) -> ResponseModel:
        if response.status_code != 200:
            raise error_cls(f"{action} failed with status {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise error_cls(f"{action} returned invalid JSON") from e

        error = gateway_error(body)
        if error:
            raise error_cls(f"{action} returned an error: {error}")

        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise error_cls(f"{action} returned an incomplete response: {body}") from e

    async def request_access_token(self) -> str:
        """
        Exchange the consumer credentials for a short-lived bearer token

        Returns:
            Bearer token

        Raises:
            GatewayConfigurationError: If credentials are not configured
            GatewayAuthenticationError: If the gateway rejects the request
        """
        if not self.consumer_key or not self.consumer_secret:
            raise GatewayConfigurationError("Payment gateway consumer credentials are not set")

        body = TokenRequest(consumer_key=self.consumer_key, consumer_secret=self.consumer_secret)
        response = await self._request(
            "POST", "/Auth/RequestToken", GatewayAuthenticationError, json=body.model_dump()
        )
        return self._decode(response, TokenResponse, GatewayAuthenticationError, "Token request").token

    async def submit_payment_request(self, token: str, payment: PaymentRequest) -> PaymentRequestResult:
        """
        Submit a payment request for an order

        Args:
            token: Bearer token from request_access_token
            payment: Order description, amount, currency and billing address

        Returns:
            Redirect URL for the customer and the gateway tracking reference

        Raises:
            GatewayResponseError: If the call fails or the response lacks either field
        """
        response = await self._request(
            "POST",
            "/Transactions/SubmitOrderRequest",
            GatewayResponseError,
            token=token,
            json=payment.model_dump(mode="json")
        )
        result = self._decode(response, PaymentRequestResult, GatewayResponseError, "Payment request")
        logger.info(f"Payment request {payment.id} accepted, tracking id {result.order_tracking_id}")
        return result

    async def query_payment_status(self, token: str, tracking_id: str) -> PaymentStatusResult:
        """
        Fetch the current status of a submitted payment

        Raises:
            GatewayResponseError: If the call fails or no status is reported
        """
        response = await self._request(
            "GET",
            "/Transactions/GetTransactionStatus",
            GatewayResponseError,
            token=token,
            params={"orderTrackingId": tracking_id}
        )
        return self._decode(response, PaymentStatusResult, GatewayResponseError, "Status query")
