"""
Shared utility functions for routers and services
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Naive UTC now; all DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC. Naive input is assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_unix(ts) -> Optional[datetime]:
    """Unix seconds (as Stripe sends them) to naive UTC, None passes through."""
    if ts is None:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).replace(tzinfo=None)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_wallet_address(wallet_address: str) -> str:
    """Wallet addresses are stored trimmed and lower-cased."""
    return (wallet_address or "").strip().lower()
