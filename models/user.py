from typing import List, Optional

from pydantic import Field, field_validator

from models.base import CamelModel
from models.enums import Language, UserSubscriptionStatus


class TrustedContact(CamelModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    relationship: str


class UserOut(CamelModel):
    user_id: str
    wallet_address: str
    subscription_status: UserSubscriptionStatus
    preferred_language: Language
    trusted_contacts: List[TrustedContact] = []
    selected_state: Optional[str] = None


class WalletAuthRequest(CamelModel):
    wallet_address: str = Field(..., min_length=1, description="Wallet address")
    # Accepted for client compatibility; ownership is not verified
    signature: Optional[str] = None
    message: Optional[str] = None

    @field_validator("wallet_address")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Wallet address is required")
        return value


class UserProfileUpdate(CamelModel):
    preferred_language: Optional[Language] = None
    selected_state: Optional[str] = Field(default=None, min_length=2, max_length=8)
    trusted_contacts: Optional[List[TrustedContact]] = None

    @field_validator("preferred_language")
    @classmethod
    def _language_not_null(cls, value: Optional[Language]) -> Language:
        if value is None:
            raise ValueError("Preferred language cannot be null")
        return value
