"""
Users Router - profile preferences and trusted contacts
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.utils.responses import success_response, error_response
from config.settings import settings
from crud.user import UserRepository
from database import get_db
from models.user import UserOut, UserProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.patch("/{user_id}")
async def update_profile(user_id: str, request: UserProfileUpdate, db: AsyncSession = Depends(get_db)):
    """
    Update language, home state and trusted contacts.
    Subscription status is owned by billing and cannot be set here.
    """
    if request.trusted_contacts is not None and len(request.trusted_contacts) > settings.max_trusted_contacts:
        return error_response(
            "validation_error",
            status=400,
            message=f"At most {settings.max_trusted_contacts} trusted contacts are allowed",
        )

    user_repo = UserRepository(db)
    user = await user_repo.get_user_by_id(user_id)
    if user is None:
        return error_response("not_found", status=404, message="User not found")

    updates = request.model_dump(exclude_unset=True, mode="json")
    if "trusted_contacts" in updates:
        updates["trusted_contacts"] = [
            contact.model_dump(by_alias=True, exclude_none=True, mode="json")
            for contact in request.trusted_contacts or []
        ]

    user = await user_repo.update_user(user, updates)
    await db.commit()

    logger.info(f"Profile updated for user {user_id}: {sorted(updates)}")
    return success_response(UserOut.model_validate(user).to_api(), message="Profile updated")
