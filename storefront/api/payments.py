"""
Payment notification (IPN) webhook
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from storefront.api.dependencies import get_payment_notification_service
from storefront.schemas.payment import PaymentNotification, PaymentNotificationAck
from storefront.services.payment_gateway import PaymentGatewayError, GatewayAuthenticationError
from storefront.services.payment_notification_service import PaymentNotificationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


async def read_notification(request: Request) -> PaymentNotification:
    """
    Extract the notification from the JSON body, or from the query string
    when the gateway sent no body
    """
    body = await request.body()
    logger.debug(f"Raw payment notification body: {body!r}")

    if request.method == "POST" and body:
        try:
            return PaymentNotification.model_validate_json(body)
        except ValidationError as e:
            logger.warning(f"Invalid payment notification body: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid JSON"
            )

    return PaymentNotification.model_validate(dict(request.query_params))


@router.api_route(
    "/payment-notification",
    methods=["GET", "POST"],
    response_model=PaymentNotificationAck,
    summary="Payment gateway notification"
)
async def payment_notification(
    request: Request,
    service: PaymentNotificationService = Depends(get_payment_notification_service)
):
    """
    Receive a payment status change from the gateway

    Accepts `OrderTrackingId` and `OrderMerchantReference` in a JSON body or
    as query parameters. Responds with a server error when the gateway
    could not be queried so that the notification is delivered again.
    """
    notification = await read_notification(request)
    tracking_id = notification.OrderTrackingId
    merchant_reference = notification.OrderMerchantReference

    if not tracking_id or not merchant_reference:
        logger.warning(
            f"Missing tracking id or merchant reference: "
            f"trackingId={tracking_id!r}, merchantRef={merchant_reference!r}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing parameters"
        )

    try:
        return await service.handle_notification(tracking_id, merchant_reference)
    except GatewayAuthenticationError as e:
        logger.error(f"Failed to get payment gateway access token: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication with payment gateway failed"
        )
    except PaymentGatewayError as e:
        logger.error(f"Failed to fetch transaction status for {tracking_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch transaction status"
        )
