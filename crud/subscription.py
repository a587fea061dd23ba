"""
SubscriptionRepository for database operations on Subscription model
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import Subscription
from utils.shared_utils import utc_now


class SubscriptionRepository:
    """
    Keyed lookups and upserts over subscriptions.
    Writes are flushed, never committed; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_stripe_subscription_id(self, stripe_subscription_id: str) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        )
        return result.scalar_one_or_none()

    async def upsert_for_user(self, user_id: str, values: dict) -> Subscription:
        """
        Insert or update the single subscription row of a user.

        Args:
            user_id: Owner of the subscription
            values: Column values to set (e.g. {"status": "active"})

        Returns:
            The inserted or updated Subscription
        """
        subscription = await self.get_by_user_id(user_id)
        now = utc_now()
        if subscription is None:
            subscription = Subscription(user_id=user_id, created_at=now)
            self.db.add(subscription)
        return await self.update(subscription, values, now=now)

    async def update(self, subscription: Subscription, values: dict, now=None) -> Subscription:
        for key, value in values.items():
            if hasattr(subscription, key):
                setattr(subscription, key, value)
        subscription.updated_at = now or utc_now()
        await self.db.flush()
        return subscription
