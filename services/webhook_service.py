"""
Subscription Reconciler - applies verified Stripe webhook events to the
local subscription and user records.

Each event is applied as one unit of work: the Subscription row and the
User.subscription_status mirror are flushed on the same session and
committed together, or rolled back together.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from crud.subscription import SubscriptionRepository
from crud.user import UserRepository
from database_models import Subscription
from models.enums import PlanType, SubscriptionStatus, UserSubscriptionStatus
from services.stripe_gateway import StripeGateway
from utils.shared_utils import from_unix

logger = logging.getLogger(__name__)


class WebhookVerificationError(Exception):
    """The webhook body could not be authenticated or parsed."""


class BillingEventType(str, Enum):
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"


# Stripe subscription status -> local SubscriptionStatus
PROVIDER_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.ACTIVE,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
    "unpaid": SubscriptionStatus.UNPAID,
    "incomplete": SubscriptionStatus.UNPAID,
    "paused": SubscriptionStatus.UNPAID,
}


def map_provider_status(provider_status: Optional[str]) -> SubscriptionStatus:
    return PROVIDER_STATUS_MAP.get(provider_status or "", SubscriptionStatus.UNPAID)


def user_status_for(status: SubscriptionStatus) -> UserSubscriptionStatus:
    """Recurring plans: premium while active, free otherwise."""
    if status == SubscriptionStatus.ACTIVE:
        return UserSubscriptionStatus.PREMIUM
    return UserSubscriptionStatus.FREE


def verify_webhook(
    payload: bytes,
    signature_header: Optional[str],
    secret: Optional[str],
    tolerance: int = 300,
) -> Dict[str, Any]:
    """
    Authenticate a Stripe webhook and parse it.

    The signature is checked against the raw body bytes exactly as
    received; JSON is only parsed afterwards.

    Args:
        payload: Raw request body
        signature_header: Value of the Stripe-Signature header
        secret: Endpoint signing secret (whsec_...)
        tolerance: Max signature age in seconds

    Returns:
        The event as a plain dict

    Raises:
        WebhookVerificationError: On missing secret/header, bad signature or bad JSON
    """
    if not secret:
        raise WebhookVerificationError("Webhook secret not configured")
    if not signature_header:
        raise WebhookVerificationError("Missing Stripe-Signature header")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WebhookVerificationError("Payload is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(body, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError("Invalid signature") from e

    try:
        event = json.loads(body)
    except ValueError as e:
        raise WebhookVerificationError("Invalid payload format") from e
    if not isinstance(event, dict) or not event.get("type"):
        raise WebhookVerificationError("Invalid payload format")
    return event


def _id_of(value: Any) -> Optional[str]:
    """Stripe references are ids, or objects when expanded."""
    if isinstance(value, dict):
        return value.get("id")
    return value


def _period(subscription: Dict[str, Any]) -> Tuple[Any, Any]:
    start = subscription.get("current_period_start")
    end = subscription.get("current_period_end")
    if start is None or end is None:
        # Newer API versions carry the period on the subscription items
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            start = items[0].get("current_period_start", start)
            end = items[0].get("current_period_end", end)
    return from_unix(start), from_unix(end)


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    subscription_id = _id_of(invoice.get("subscription"))
    if subscription_id:
        return subscription_id
    details = ((invoice.get("parent") or {}).get("subscription_details")) or {}
    return _id_of(details.get("subscription"))


@dataclass
class ReconcileResult:
    event_type: str
    handled: bool
    user_id: Optional[str] = None
    subscription_status: Optional[str] = None
    user_status: Optional[str] = None
    note: Optional[str] = None


class SubscriptionReconciler:
    """
    Drives the Subscription/User pair from Stripe events. Every write is an
    upsert keyed by user id or Stripe subscription id, so redelivered events
    converge to the same state; events older than the last one applied to a
    row are skipped.
    """

    def __init__(self, db: AsyncSession, gateway: StripeGateway):
        self.db = db
        self.gateway = gateway
        self.users = UserRepository(db)
        self.subscriptions = SubscriptionRepository(db)

    async def handle_event(self, event: Dict[str, Any]) -> ReconcileResult:
        """
        Apply one verified event and commit.

        Raises whatever the store or Stripe raised, after rolling back, so
        the webhook answers 500 and Stripe redelivers.
        """
        raw_type = event.get("type") or ""
        obj = (event.get("data") or {}).get("object") or {}
        event_at = from_unix(event.get("created"))

        try:
            event_type = BillingEventType(raw_type)
        except ValueError:
            logger.info(f"Unhandled Stripe event type: {raw_type}")
            return ReconcileResult(raw_type, handled=False, note="ignored")

        try:
            if event_type is BillingEventType.PAYMENT_INTENT_SUCCEEDED:
                result = await self._on_payment_intent_succeeded(obj, event_at)
            elif event_type is BillingEventType.SUBSCRIPTION_CREATED:
                result = await self._on_subscription_changed(event_type, obj, event_at)
            elif event_type is BillingEventType.SUBSCRIPTION_UPDATED:
                result = await self._on_subscription_changed(event_type, obj, event_at)
            elif event_type is BillingEventType.SUBSCRIPTION_DELETED:
                result = await self._on_subscription_deleted(obj, event_at)
            elif event_type is BillingEventType.INVOICE_PAYMENT_SUCCEEDED:
                result = await self._on_invoice(event_type, obj, event_at, paid=True)
            elif event_type is BillingEventType.INVOICE_PAYMENT_FAILED:
                result = await self._on_invoice(event_type, obj, event_at, paid=False)
            else:
                raise AssertionError(f"No handler for {event_type}")
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(f"Stripe {raw_type} failed, nothing applied", exc_info=True)
            raise

        self._log(result)
        return result

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_payment_intent_succeeded(self, intent: Dict[str, Any], event_at) -> ReconcileResult:
        event_type = BillingEventType.PAYMENT_INTENT_SUCCEEDED.value
        metadata = intent.get("metadata") or {}
        user_id = metadata.get("userId")
        plan_type = metadata.get("planType")

        if not user_id or not plan_type:
            logger.warning(f"Missing metadata in payment intent: {intent.get('id')}")
            return ReconcileResult(event_type, handled=False, note="missing-metadata")
        if plan_type != PlanType.LIFETIME.value:
            # Monthly payments are reconciled through invoice events
            return ReconcileResult(event_type, handled=False, user_id=user_id, note="not-lifetime")

        row = await self.subscriptions.get_by_user_id(user_id)
        if self._is_stale(row, event_at):
            return ReconcileResult(event_type, handled=False, user_id=user_id, note="stale")

        return await self._apply(
            event_type,
            user_id,
            row,
            {
                "stripe_customer_id": _id_of(intent.get("customer")),
                "stripe_subscription_id": None,
                "status": SubscriptionStatus.ACTIVE.value,
                "plan_type": PlanType.LIFETIME.value,
                "current_period_start": None,
                "current_period_end": None,
            },
            UserSubscriptionStatus.LIFETIME,
            event_at,
        )

    async def _on_subscription_changed(self, event_type: BillingEventType, subscription: Dict[str, Any], event_at) -> ReconcileResult:
        """created/updated: mirror the provider status and billing period."""
        row, user_id, note = await self._resolve(
            subscription.get("id"),
            (subscription.get("metadata") or {}).get("userId"),
            takes_over=event_type is BillingEventType.SUBSCRIPTION_CREATED,
            event_at=event_at,
        )
        if note:
            return ReconcileResult(event_type.value, handled=False, user_id=user_id, note=note)

        status = map_provider_status(subscription.get("status"))
        period_start, period_end = _period(subscription)
        return await self._apply(
            event_type.value,
            user_id,
            row,
            {
                "stripe_customer_id": _id_of(subscription.get("customer")),
                "stripe_subscription_id": subscription.get("id"),
                "status": status.value,
                "plan_type": PlanType.MONTHLY.value,
                "current_period_start": period_start,
                "current_period_end": period_end,
            },
            user_status_for(status),
            event_at,
        )

    async def _on_subscription_deleted(self, subscription: Dict[str, Any], event_at) -> ReconcileResult:
        event_type = BillingEventType.SUBSCRIPTION_DELETED.value
        row, user_id, note = await self._resolve(
            subscription.get("id"),
            (subscription.get("metadata") or {}).get("userId"),
            takes_over=False,
            event_at=event_at,
        )
        if note:
            return ReconcileResult(event_type, handled=False, user_id=user_id, note=note)

        values = {
            "status": SubscriptionStatus.CANCELED.value,
            "stripe_subscription_id": subscription.get("id"),
        }
        if row is None:
            values["plan_type"] = PlanType.MONTHLY.value
            values["stripe_customer_id"] = _id_of(subscription.get("customer"))
        return await self._apply(event_type, user_id, row, values, UserSubscriptionStatus.FREE, event_at)

    async def _on_invoice(self, event_type: BillingEventType, invoice: Dict[str, Any], event_at, paid: bool) -> ReconcileResult:
        """
        Invoice payloads do not carry the billing period, so the current
        subscription is fetched from Stripe first.
        """
        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return ReconcileResult(event_type.value, handled=False, note="no-subscription")

        subscription = await self.gateway.retrieve_subscription(subscription_id)
        row, user_id, note = await self._resolve(
            subscription_id,
            (subscription.get("metadata") or {}).get("userId"),
            takes_over=False,
            event_at=event_at,
        )
        if note:
            return ReconcileResult(event_type.value, handled=False, user_id=user_id, note=note)

        values = {
            "stripe_customer_id": _id_of(subscription.get("customer")) or _id_of(invoice.get("customer")),
            "stripe_subscription_id": subscription_id,
            "plan_type": PlanType.MONTHLY.value,
        }
        if paid:
            period_start, period_end = _period(subscription)
            values.update({
                "status": SubscriptionStatus.ACTIVE.value,
                "current_period_start": period_start,
                "current_period_end": period_end,
            })
            user_status = UserSubscriptionStatus.PREMIUM
        else:
            values["status"] = SubscriptionStatus.PAST_DUE.value
            # Grace period: the user keeps their current tier
            user_status = None
        return await self._apply(event_type.value, user_id, row, values, user_status, event_at)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        stripe_subscription_id: Optional[str],
        metadata_user_id: Optional[str],
        takes_over: bool,
        event_at,
    ) -> Tuple[Optional[Subscription], Optional[str], Optional[str]]:
        """
        Find the row a recurring-subscription event applies to.

        Returns (row, user_id, note); a non-empty note means skip the event.
        The row is None when the event arrived before anything was stored
        for the user, in which case the caller upserts by user id.
        """
        row = None
        if stripe_subscription_id:
            row = await self.subscriptions.get_by_stripe_subscription_id(stripe_subscription_id)
        if row is None:
            if not metadata_user_id:
                logger.warning(f"Missing userId in subscription metadata: {stripe_subscription_id}")
                return None, None, "missing-metadata"
            row = await self.subscriptions.get_by_user_id(metadata_user_id)
            if row is not None:
                if row.plan_type == PlanType.LIFETIME.value and row.status == SubscriptionStatus.ACTIVE.value:
                    logger.info(f"User {metadata_user_id} holds a lifetime plan; ignoring subscription {stripe_subscription_id}")
                    return row, metadata_user_id, "lifetime"
                if not takes_over and row.stripe_subscription_id not in (None, stripe_subscription_id):
                    logger.info(
                        f"Subscription {stripe_subscription_id} superseded by {row.stripe_subscription_id} "
                        f"for user {metadata_user_id}"
                    )
                    return row, metadata_user_id, "superseded"

        user_id = row.user_id if row is not None else metadata_user_id
        if self._is_stale(row, event_at):
            return row, user_id, "stale"
        return row, user_id, None

    def _is_stale(self, row: Optional[Subscription], event_at) -> bool:
        if row is None or row.last_event_at is None or event_at is None:
            return False
        if event_at < row.last_event_at:
            logger.info(
                f"Skipping out-of-order event for user {row.user_id}: "
                f"{event_at.isoformat()} < {row.last_event_at.isoformat()}"
            )
            return True
        return False

    async def _apply(
        self,
        event_type: str,
        user_id: str,
        row: Optional[Subscription],
        values: Dict[str, Any],
        user_status: Optional[UserSubscriptionStatus],
        event_at,
    ) -> ReconcileResult:
        if event_at is not None:
            values["last_event_at"] = event_at
        if row is None:
            row = await self.subscriptions.upsert_for_user(user_id, values)
        else:
            row = await self.subscriptions.update(row, values)

        if user_status is not None:
            user = await self.users.set_subscription_status(user_id, user_status.value)
            if user is None:
                logger.warning(f"Subscription stored for unknown user {user_id}")
            resulting_user_status = user_status.value
        else:
            user = await self.users.get_user_by_id(user_id)
            resulting_user_status = user.subscription_status if user else None

        return ReconcileResult(
            event_type,
            handled=True,
            user_id=user_id,
            subscription_status=row.status,
            user_status=resulting_user_status,
        )

    def _log(self, result: ReconcileResult) -> None:
        extra = {
            "event_type": result.event_type,
            "user_id": result.user_id,
            "subscription_status": result.subscription_status,
            "user_status": result.user_status,
        }
        if result.handled:
            logger.info(
                f"Stripe {result.event_type}: user={result.user_id} "
                f"subscription={result.subscription_status} user_status={result.user_status}",
                extra=extra,
            )
        else:
            logger.info(
                f"Stripe {result.event_type}: no change for user={result.user_id} ({result.note})",
                extra=extra,
            )
