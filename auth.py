"""
Wallet identity routes
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.utils.responses import success_response, error_response
from crud.user import UserRepository
from database import get_db
from models.user import UserOut, WalletAuthRequest

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/wallet")
async def wallet_auth(request: WalletAuthRequest, db: AsyncSession = Depends(get_db)):
    """
    Sign in with a wallet address, creating a free-tier user on first use.

    The address is matched case-insensitively. Signature and message are
    accepted but not verified.
    """
    user_repo = UserRepository(db)

    user = await user_repo.get_user_by_wallet(request.wallet_address)
    if user is not None:
        user = await user_repo.update_user(user, {})
        await db.commit()
        return success_response(UserOut.model_validate(user).to_api(), message="Welcome back")

    try:
        user = await user_repo.create_user(request.wallet_address)
        await db.commit()
    except IntegrityError:
        # Another request registered the same wallet first
        await db.rollback()
        user = await user_repo.get_user_by_wallet(request.wallet_address)
        if user is None:
            raise
        return success_response(UserOut.model_validate(user).to_api(), message="Welcome back")

    logger.info(f"New user {user.user_id} registered for wallet {user.wallet_address}")
    return success_response(UserOut.model_validate(user).to_api(), message="Account created")


@auth_router.get("/wallet")
async def get_wallet_user(
    wallet_address: Optional[str] = Query(default=None, alias="walletAddress"),
    db: AsyncSession = Depends(get_db),
):
    """Look up the user registered for a wallet address"""
    if not wallet_address or not wallet_address.strip():
        return error_response("validation_error", status=400, message="Wallet address is required")

    user = await UserRepository(db).get_user_by_wallet(wallet_address)
    if user is None:
        return error_response("not_found", status=404, message="User not found")
    return success_response(UserOut.model_validate(user).to_api())
