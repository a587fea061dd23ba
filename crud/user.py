"""
UserRepository for database operations on User model
"""

import uuid
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import User
from utils.shared_utils import normalize_wallet_address, utc_now


class UserRepository:
    """
    Repository class for User database operations.
    Encapsulates all database logic for the User model.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            db: AsyncSession instance for database operations
        """
        self.db = db

    async def get_user_by_wallet(self, wallet_address: str) -> Optional[User]:
        """
        Retrieve a user by wallet address.

        Args:
            wallet_address: Wallet address (case-insensitive search)

        Returns:
            User object if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.wallet_address == normalize_wallet_address(wallet_address))
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, wallet_address: str) -> User:
        """
        Create a free-tier user for a wallet address.

        Returns:
            Created User object (flushed, not committed)
        """
        now = utc_now()
        user = User(
            user_id=str(uuid.uuid4()),
            wallet_address=normalize_wallet_address(wallet_address),
            subscription_status="free",
            preferred_language="en",
            trusted_contacts=[],
            selected_state=None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def update_user(self, user: User, updates: dict) -> User:
        """
        Update user fields.

        Args:
            user: User object to update
            updates: Dictionary of fields to update (e.g., {"selected_state": "CA"})

        Returns:
            Updated User object
        """
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)
        user.updated_at = utc_now()

        await self.db.flush()
        return user

    async def set_subscription_status(self, user_id: str, status: str) -> Optional[User]:
        """
        Set the denormalized subscription status on a user.
        Returns None when no such user exists.
        """
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        return await self.update_user(user, {"subscription_status": status})
