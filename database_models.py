import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON, Text, Index
from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Wallet-identified app user.
    subscription_status mirrors the Subscription row and is only written
    in the same transaction as that row.
    """
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True, default=_uuid)
    wallet_address = Column(String(255), unique=True, index=True, nullable=False)
    subscription_status = Column(String(16), nullable=False, default="free")
    preferred_language = Column(String(8), nullable=False, default="en")
    trusted_contacts = Column(JSON, nullable=False, default=list)
    selected_state = Column(String(8), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Subscription(Base):
    """One billing relationship per user."""
    __tablename__ = "subscriptions"

    id = Column(String(64), primary_key=True, default=_uuid)
    user_id = Column(String(64), unique=True, index=True, nullable=False)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_subscription_id = Column(String(255), unique=True, index=True, nullable=True)
    status = Column(String(16), nullable=False)
    plan_type = Column(String(16), nullable=False)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    # Stripe `created` time of the newest event applied to this row
    last_event_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Guide(Base):
    __tablename__ = "guides"

    guide_id = Column(String(128), primary_key=True)
    state = Column(String(8), index=True, nullable=False)
    language = Column(String(8), nullable=False)
    content = Column(JSON, nullable=False)
    type = Column(String(16), nullable=False)
    last_updated = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Script(Base):
    __tablename__ = "scripts"

    script_id = Column(String(128), primary_key=True)
    scenario = Column(String(64), index=True, nullable=False)
    language = Column(String(8), nullable=False)
    content = Column(JSON, nullable=False)
    state_applicability = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Incident(Base):
    __tablename__ = "incidents"
    __table_args__ = (
        Index("ix_incidents_user_timestamp", "user_id", "timestamp"),
    )

    incident_id = Column(String(128), primary_key=True)
    user_id = Column(String(64), index=True, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    location = Column(JSON, nullable=False)
    recording_url = Column(Text, nullable=True)
    summary = Column(Text, nullable=False, default="")
    shared_status = Column(String(32), nullable=False, default="private")
    # "metadata" is reserved on declarative classes
    incident_metadata = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
