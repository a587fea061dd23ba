from datetime import datetime
from typing import Optional

from models.base import CamelModel
from models.enums import PlanType, SubscriptionStatus


class SubscriptionOut(CamelModel):
    id: str
    user_id: str
    status: SubscriptionStatus
    plan_type: PlanType
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


class CreateSubscriptionRequest(CamelModel):
    user_id: str
    plan_type: PlanType
    wallet_address: str
