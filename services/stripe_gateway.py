"""
Stripe Gateway - thin wrapper over the Stripe SDK used by billing and webhooks.

Every call passes the API key and version explicitly so no process-wide
Stripe state is touched. Return values are plain dicts.
"""

import logging
from typing import Any, Dict, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from config.settings import settings
from utils.shared_utils import normalize_wallet_address

logger = logging.getLogger(__name__)


class BillingProviderError(Exception):
    """Raised when Stripe rejects or fails a call."""


def as_plain_dict(obj: Any) -> Dict[str, Any]:
    """Convert a StripeObject (or dict) into a plain, recursive dict."""
    if obj is None:
        return {}
    to_dict_recursive = getattr(obj, "to_dict_recursive", None)
    if callable(to_dict_recursive):
        return to_dict_recursive()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        try:
            return to_dict(recursive=True)
        except TypeError:
            return to_dict()
    return dict(obj)


class StripeGateway:
    """
    Billing-provider operations needed by LexiGuard.
    """

    def __init__(
        self,
        api_key: Optional[str],
        api_version: Optional[str] = None,
        currency: str = "usd",
        monthly_price_cents: int = 499,
        lifetime_price_cents: int = 2999,
        price_id: Optional[str] = None,
        product_id: Optional[str] = None,
        customer_email_domain: str = "lexiguard.app",
    ):
        self.api_key = api_key
        self.api_version = api_version
        self.currency = currency
        self.monthly_price_cents = monthly_price_cents
        self.lifetime_price_cents = lifetime_price_cents
        self.price_id = price_id
        self.product_id = product_id
        self.customer_email_domain = customer_email_domain

    def _request_options(self) -> Dict[str, Any]:
        if not self.api_key:
            raise BillingProviderError("STRIPE_SECRET_KEY is not set. Stripe functionality is unavailable.")
        options = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return options

    def customer_email_for(self, wallet_address: str) -> str:
        """Deterministic Stripe customer key derived from the wallet address."""
        return f"{normalize_wallet_address(wallet_address)}@{self.customer_email_domain}"

    async def find_or_create_customer(self, wallet_address: str, user_id: str) -> str:
        """
        Resolve the Stripe customer for a wallet, creating it on first use.

        Returns:
            Stripe customer id
        """
        email = self.customer_email_for(wallet_address)
        try:
            customers = await run_in_threadpool(stripe.Customer.list, email=email, limit=1, **self._request_options())
            if customers.data:
                return customers.data[0].id
            customer = await run_in_threadpool(
                stripe.Customer.create,
                email=email,
                metadata={"userId": user_id, "walletAddress": wallet_address},
                **self._request_options(),
            )
            return customer.id
        except stripe.StripeError as e:
            raise BillingProviderError(f"Failed to resolve customer: {e}") from e

    async def create_lifetime_payment_intent(self, customer_id: str, user_id: str, wallet_address: str) -> Dict[str, Any]:
        """One-time payment for lifetime access."""
        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                amount=self.lifetime_price_cents,
                currency=self.currency,
                customer=customer_id,
                metadata={
                    "userId": user_id,
                    "planType": "lifetime",
                    "walletAddress": wallet_address,
                },
                **self._request_options(),
            )
        except stripe.StripeError as e:
            raise BillingProviderError(f"Failed to create payment intent: {e}") from e
        return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}

    def _monthly_item(self) -> Dict[str, Any]:
        if self.price_id:
            return {"price": self.price_id}
        if self.product_id:
            return {
                "price_data": {
                    "currency": self.currency,
                    "product": self.product_id,
                    "unit_amount": self.monthly_price_cents,
                    "recurring": {"interval": "month"},
                }
            }
        raise BillingProviderError("STRIPE_PRICE_ID or STRIPE_PRODUCT_ID must be set for monthly plans.")

    async def create_monthly_subscription(self, customer_id: str, user_id: str, wallet_address: str) -> Dict[str, Any]:
        """
        Recurring subscription left in `incomplete` state until the first
        invoice is paid on the client.
        """
        item = self._monthly_item()
        try:
            subscription = await run_in_threadpool(
                stripe.Subscription.create,
                customer=customer_id,
                items=[item],
                payment_behavior="default_incomplete",
                payment_settings={"save_default_payment_method": "on_subscription"},
                expand=["latest_invoice.payment_intent"],
                metadata={"userId": user_id, "walletAddress": wallet_address},
                **self._request_options(),
            )
        except stripe.StripeError as e:
            raise BillingProviderError(f"Failed to create subscription: {e}") from e

        data = as_plain_dict(subscription)
        invoice = data.get("latest_invoice") or {}
        payment_intent = invoice.get("payment_intent") or {}
        client_secret = payment_intent.get("client_secret")
        if not client_secret:
            # Newer API versions expose the secret on the invoice itself
            client_secret = (invoice.get("confirmation_secret") or {}).get("client_secret")
        return {
            "subscriptionId": data.get("id"),
            "clientSecret": client_secret,
            "paymentIntentId": payment_intent.get("id"),
        }

    async def retrieve_subscription(self, stripe_subscription_id: str) -> Dict[str, Any]:
        try:
            subscription = await run_in_threadpool(stripe.Subscription.retrieve, stripe_subscription_id, **self._request_options())
        except stripe.StripeError as e:
            raise BillingProviderError(f"Failed to retrieve subscription {stripe_subscription_id}: {e}") from e
        return as_plain_dict(subscription)

    async def cancel_subscription(self, stripe_subscription_id: str) -> Dict[str, Any]:
        try:
            subscription = await run_in_threadpool(stripe.Subscription.cancel, stripe_subscription_id, **self._request_options())
        except stripe.StripeError as e:
            raise BillingProviderError(f"Failed to cancel subscription {stripe_subscription_id}: {e}") from e
        return as_plain_dict(subscription)


def get_stripe_gateway() -> StripeGateway:
    """FastAPI dependency; override in tests with a fake."""
    return StripeGateway(
        api_key=settings.stripe_secret_key,
        api_version=settings.stripe_api_version,
        currency=settings.billing_currency,
        monthly_price_cents=settings.monthly_price_cents,
        lifetime_price_cents=settings.lifetime_price_cents,
        price_id=settings.stripe_price_id,
        product_id=settings.stripe_product_id,
        customer_email_domain=settings.customer_email_domain,
    )
