"""
Billing Router - API endpoints for Stripe billing integration
Webhook is defined FIRST to avoid middleware conflicts
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.utils.responses import success_response, error_response
from config.settings import settings
from database import get_db
from models.subscription import CreateSubscriptionRequest
from services.billing_service import BillingService
from services.stripe_gateway import StripeGateway, get_stripe_gateway
from services.webhook_service import SubscriptionReconciler, WebhookVerificationError, verify_webhook

logger = logging.getLogger(__name__)

billing_router = APIRouter(tags=["billing"])


def get_webhook_secret() -> Optional[str]:
    """Signing secret dependency, overridable in tests."""
    return settings.stripe_webhook_secret


# WEBHOOK ENDPOINT - MUST BE DEFINED FIRST TO AVOID MIDDLEWARE CONFLICTS
@billing_router.post("/api/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
    webhook_secret: Optional[str] = Depends(get_webhook_secret),
):
    """
    Handle Stripe webhook events with signature verification.

    The signature is checked on the raw body before anything is parsed;
    unverified requests get 400 and change nothing. Unknown event types are
    acknowledged so Stripe does not retry them. A failing handler answers
    500, which makes Stripe redeliver the event.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = verify_webhook(payload, signature, webhook_secret, settings.stripe_webhook_tolerance)
    except WebhookVerificationError as e:
        logger.error(f"Stripe webhook verification failed: {e}")
        return error_response("invalid_signature", status=400, message=str(e))

    try:
        await SubscriptionReconciler(db, gateway).handle_event(event)
    except Exception as e:
        logger.error(f"Webhook handler error for {event.get('type')} ({event.get('id')}): {e}")
        return error_response("webhook_handler_failed", status=500, message="Webhook handler failed")

    return JSONResponse(status_code=200, content={"received": True})


@billing_router.get("/api/subscriptions")
async def get_subscription(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    db: AsyncSession = Depends(get_db),
):
    """Current subscription for a user; data is null when there is none."""
    if not user_id:
        return error_response("validation_error", status=400, message="User ID is required")

    subscription = await BillingService(db).get_subscription(user_id)
    if subscription is None:
        return success_response(None, message="No subscription found")
    return success_response(subscription)


@billing_router.post("/api/subscriptions")
async def create_subscription(
    request: CreateSubscriptionRequest,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    """
    Start a monthly or lifetime checkout.

    Returns the Stripe client secret the frontend needs to confirm payment.
    The subscription only becomes active once the webhook reports success.
    """
    result = await BillingService(db, gateway).create_subscription(
        request.user_id, request.plan_type, request.wallet_address
    )
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Payment pending confirmation")


@billing_router.delete("/api/subscriptions")
async def cancel_subscription(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_stripe_gateway),
):
    if not user_id:
        return error_response("validation_error", status=400, message="User ID is required")

    result = await BillingService(db, gateway).cancel_subscription(user_id)
    if result.get("is_error"):
        return error_response(result["error"], status=result["status"], message=result["message"])
    return success_response(result["data"], message="Subscription canceled successfully")
