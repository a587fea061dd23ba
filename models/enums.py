from enum import Enum


class UserSubscriptionStatus(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    LIFETIME = "lifetime"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"


class PlanType(str, Enum):
    MONTHLY = "monthly"
    LIFETIME = "lifetime"


class Language(str, Enum):
    EN = "en"
    ES = "es"


class GuideType(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"


class Importance(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    HELPFUL = "helpful"


class SharedStatus(str, Enum):
    PRIVATE = "private"
    SHARED_CONTACTS = "shared_contacts"
    SHARED_LEGAL = "shared_legal"
