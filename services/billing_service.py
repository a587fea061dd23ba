"""
Billing Service - subscription commands backed by Stripe
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crud.subscription import SubscriptionRepository
from crud.user import UserRepository
from models.enums import PlanType, SubscriptionStatus, UserSubscriptionStatus
from models.subscription import SubscriptionOut
from services.stripe_gateway import BillingProviderError, StripeGateway
from utils.shared_utils import utc_now

logger = logging.getLogger(__name__)


class BillingService:
    """
    Service class for handling billing-related business logic.
    Results use the normalized shape {"data": ..., "is_error": False} or
    {"error": code, "message": str, "status": int, "is_error": True}.
    """

    def __init__(self, db: AsyncSession, gateway: Optional[StripeGateway] = None):
        """
        Initialize the billing service.

        Args:
            db: AsyncSession instance for database operations
            gateway: Stripe gateway used for provider calls (not needed for reads)
        """
        self.db = db
        self.gateway = gateway
        self.subscriptions = SubscriptionRepository(db)
        self.users = UserRepository(db)

    async def create_subscription(self, user_id: str, plan_type: PlanType, wallet_address: str):
        """
        Start checkout for a plan. Nothing is stored locally: the returned
        client secret stays pending until a webhook confirms the payment.

        Args:
            user_id: Paying user
            plan_type: monthly or lifetime
            wallet_address: Used to derive the Stripe customer

        Returns:
            {"clientSecret", "paymentIntentId"} plus "subscriptionId" for monthly plans
        """
        existing = await self.subscriptions.get_by_user_id(user_id)
        if existing is not None and existing.status == SubscriptionStatus.ACTIVE.value:
            return {
                "error": "conflict",
                "message": "User already has an active subscription",
                "status": 409,
                "is_error": True,
            }

        try:
            customer_id = await self.gateway.find_or_create_customer(wallet_address, user_id)
            if plan_type == PlanType.LIFETIME:
                data = await self.gateway.create_lifetime_payment_intent(customer_id, user_id, wallet_address)
            else:
                data = await self.gateway.create_monthly_subscription(customer_id, user_id, wallet_address)
        except BillingProviderError as e:
            logger.error(f"Stripe checkout failed for user {user_id} ({plan_type.value}): {e}", exc_info=True)
            return {
                "error": "billing_provider_error",
                "message": "Failed to create subscription",
                "status": 500,
                "is_error": True,
            }

        logger.info(f"Checkout started for user {user_id}: plan={plan_type.value}")
        return {"data": data, "is_error": False}

    async def get_subscription(self, user_id: str) -> Optional[dict]:
        """The user's subscription in API shape, or None."""
        subscription = await self.subscriptions.get_by_user_id(user_id)
        if subscription is None:
            return None
        return SubscriptionOut.model_validate(subscription).to_api()

    async def cancel_subscription(self, user_id: str):
        """
        Cancel locally, and at Stripe when a recurring subscription exists.
        A Stripe failure is logged and does not block the local cancel.
        """
        subscription = await self.subscriptions.get_by_user_id(user_id)
        if subscription is None:
            return {"error": "not_found", "message": "Subscription not found", "status": 404, "is_error": True}

        if subscription.stripe_subscription_id:
            try:
                await self.gateway.cancel_subscription(subscription.stripe_subscription_id)
            except BillingProviderError as e:
                logger.error(f"Stripe cancellation failed for user {user_id}, cancelling locally: {e}")

        try:
            # Events created before the cancel are stale from here on
            await self.subscriptions.update(
                subscription,
                {"status": SubscriptionStatus.CANCELED.value, "last_event_at": utc_now()},
            )
            await self.users.set_subscription_status(user_id, UserSubscriptionStatus.FREE.value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Subscription canceled for user {user_id}",
            extra={"user_id": user_id, "subscription_status": "canceled", "user_status": "free"},
        )
        return {"data": {"status": SubscriptionStatus.CANCELED.value}, "is_error": False}
