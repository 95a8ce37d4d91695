import json
from decimal import Decimal

import httpx
import pytest

from storefront.config import Settings, settings
from storefront.schemas.payment import BillingAddress, PaymentRequest
from storefront.services.payment_gateway import (
    GatewayAuthenticationError,
    GatewayConfigurationError,
    GatewayResponseError
)


def payment_request(amount="1500.00"):
    return PaymentRequest(
        id="ORDER-1",
        currency="KES",
        amount=Decimal(amount),
        description="Payment for order #1",
        callback_url="http://localhost:3000/payment/callback",
        notification_id="ipn-test",
        billing_address=BillingAddress(
            email_address="jane@example.com",
            phone_number="+254700000000",
            country_code="KE",
            first_name="Jane",
            last_name="Doe",
            city="Nairobi",
            line_1="Nairobi"
        )
    )


def test_client_uses_uniform_timeout(fake_gateway):
    assert fake_gateway.client().timeout == 30.0


@pytest.mark.asyncio
async def test_request_access_token(fake_gateway):
    token = await fake_gateway.client().request_access_token()

    assert token == "test-token"
    request = fake_gateway.requests_to("/Auth/RequestToken")[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {"consumer_key": "test-key", "consumer_secret": "test-secret"}


@pytest.mark.asyncio
async def test_request_access_token_without_credentials(fake_gateway):
    config = Settings(PESAPAL_CONSUMER_KEY="", PESAPAL_CONSUMER_SECRET="")

    with pytest.raises(GatewayConfigurationError):
        await fake_gateway.client(config).request_access_token()

    assert fake_gateway.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    (401, {"error": {"code": "invalid_consumer_key_or_secret_provided"}}),
    (200, {"expiryDate": "2099-01-01T00:00:00Z"}),
    (200, {"token": ""}),
    (200, {"token": None, "error": {"error_type": "api_error", "code": "invalid_credentials", "message": "bad"}}),
])
async def test_request_access_token_rejected(fake_gateway, response):
    fake_gateway.token = response

    with pytest.raises(GatewayAuthenticationError):
        await fake_gateway.client().request_access_token()


@pytest.mark.asyncio
async def test_request_access_token_connection_error(fake_gateway):
    fake_gateway.token = httpx.ConnectError("connection refused")

    with pytest.raises(GatewayAuthenticationError):
        await fake_gateway.client().request_access_token()


@pytest.mark.asyncio
async def test_submit_payment_request(fake_gateway):
    result = await fake_gateway.client().submit_payment_request("test-token", payment_request())

    assert result.order_tracking_id == "T123"
    assert result.redirect_url == "https://pay.x/y"

    request = fake_gateway.requests_to("/Transactions/SubmitOrderRequest")[0]
    assert request.headers["Authorization"] == "Bearer test-token"
    body = json.loads(request.content)
    assert body["id"] == "ORDER-1"
    assert body["amount"] == 1500.0
    assert body["notification_id"] == "ipn-test"
    assert body["billing_address"]["first_name"] == "Jane"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    (500, {"error": {"message": "internal"}}),
    (200, {"order_tracking_id": "T123"}),
    (200, {"redirect_url": "https://pay.x/y"}),
    (200, {"order_tracking_id": "", "redirect_url": "https://pay.x/y"}),
])
async def test_submit_payment_request_failures(fake_gateway, response):
    fake_gateway.submit = response

    with pytest.raises(GatewayResponseError):
        await fake_gateway.client().submit_payment_request("test-token", payment_request())


@pytest.mark.asyncio
async def test_submit_payment_request_timeout(fake_gateway):
    fake_gateway.submit = httpx.ReadTimeout("timed out")

    with pytest.raises(GatewayResponseError):
        await fake_gateway.client().submit_payment_request("test-token", payment_request())


@pytest.mark.asyncio
async def test_query_payment_status(fake_gateway):
    result = await fake_gateway.client().query_payment_status("test-token", "T123")

    assert result.payment_status_description == "Completed"
    assert result.confirmation_code == "CONF-1"
    request = fake_gateway.requests_to("/Transactions/GetTransactionStatus")[0]
    assert request.url.params["orderTrackingId"] == "T123"
    assert request.headers["Authorization"] == "Bearer test-token"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    (500, {"error": {"message": "internal"}}),
    (200, {"payment_status_description": "Failed", "error": {"code": "payment_details_not_found"}}),
    (200, {"payment_method": "Visa"}),
    (200, {"payment_status_description": ""}),
])
async def test_query_payment_status_failures(fake_gateway, response):
    fake_gateway.status = response

    with pytest.raises(GatewayResponseError):
        await fake_gateway.client().query_payment_status("test-token", "T123")


def test_gateway_base_url_from_settings(fake_gateway):
    assert fake_gateway.client().base_url == settings.PESAPAL_BASE_URL.rstrip("/")
