"""
Tests for the subscription command endpoints
"""
import pytest

from conftest import make_event
from services.stripe_gateway import BillingProviderError, StripeGateway


@pytest.mark.asyncio
async def test_create_lifetime_checkout(client, fake_gateway, seed_user, fetch_subscription):
    """
    Lifetime checkout returns the payment intent secret and stores nothing
    until the webhook confirms the payment.
    """
    await seed_user()

    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "lifetime", "walletAddress": "0xABC"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"] == {"clientSecret": "pi_life_secret", "paymentIntentId": "pi_life"}
    assert fake_gateway.called("find_or_create_customer") == [("0xABC", "user-1")]
    assert fake_gateway.called("create_lifetime_payment_intent") == [("cus_test", "user-1", "0xABC")]
    assert await fetch_subscription() is None


@pytest.mark.asyncio
async def test_create_monthly_checkout(client, fake_gateway, seed_user):
    await seed_user()

    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "monthly", "walletAddress": "0xabc"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["subscriptionId"] == "sub_new"
    assert len(fake_gateway.called("create_monthly_subscription")) == 1


@pytest.mark.asyncio
async def test_create_with_active_subscription_conflicts(client, fake_gateway, seed_user, seed_subscription):
    """An already active subscription answers 409 without calling Stripe"""
    await seed_user(subscription_status="premium")
    await seed_subscription(status="active", plan_type="monthly", stripe_subscription_id="sub_1")

    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "lifetime", "walletAddress": "0xabc"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"
    assert fake_gateway.calls == []


@pytest.mark.asyncio
async def test_create_after_cancel_is_allowed(client, seed_user, seed_subscription):
    await seed_user()
    await seed_subscription(status="canceled", plan_type="monthly", stripe_subscription_id="sub_1")

    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "monthly", "walletAddress": "0xabc"},
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_create_provider_failure_is_generic_500(client, fake_gateway, seed_user):
    await seed_user()
    fake_gateway.fail_on.add("create_lifetime_payment_intent")

    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "lifetime", "walletAddress": "0xabc"},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "billing_provider_error"
    assert body["message"] == "Failed to create subscription"


@pytest.mark.asyncio
async def test_create_rejects_unknown_plan(client):
    response = await client.post(
        "/api/subscriptions",
        json={"userId": "user-1", "planType": "weekly", "walletAddress": "0xabc"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["data"]["details"]


@pytest.mark.asyncio
async def test_get_subscription_none(client):
    response = await client.get("/api/subscriptions", params={"userId": "nobody"})

    assert response.status_code == 200
    body = response.json()
    assert body["data"] is None
    assert body["message"] == "No subscription found"


@pytest.mark.asyncio
async def test_get_subscription_requires_user_id(client):
    response = await client.get("/api/subscriptions")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_subscription_camel_case(client, seed_user, seed_subscription):
    await seed_user()
    await seed_subscription(status="active", plan_type="lifetime")

    response = await client.get("/api/subscriptions", params={"userId": "user-1"})

    data = response.json()["data"]
    assert data["userId"] == "user-1"
    assert data["planType"] == "lifetime"
    assert data["status"] == "active"
    assert data["currentPeriodEnd"] is None


@pytest.mark.asyncio
async def test_cancel_survives_provider_failure(
    client, fake_gateway, seed_user, seed_subscription, fetch_user, fetch_subscription
):
    """Stripe failing to cancel does not block the local cancellation"""
    await seed_user(subscription_status="premium")
    await seed_subscription(status="active", plan_type="monthly", stripe_subscription_id="sub_1")
    fake_gateway.fail_on.add("cancel_subscription")

    response = await client.delete("/api/subscriptions", params={"userId": "user-1"})

    assert response.status_code == 200
    assert response.json()["data"] == {"status": "canceled"}
    assert fake_gateway.called("cancel_subscription") == [("sub_1",)]
    assert (await fetch_subscription()).status == "canceled"
    assert (await fetch_user()).subscription_status == "free"


@pytest.mark.asyncio
async def test_cancel_lifetime_skips_stripe(client, fake_gateway, seed_user, seed_subscription, fetch_subscription):
    await seed_user(subscription_status="lifetime")
    await seed_subscription(status="active", plan_type="lifetime")

    response = await client.delete("/api/subscriptions", params={"userId": "user-1"})

    assert response.status_code == 200
    assert fake_gateway.called("cancel_subscription") == []
    assert (await fetch_subscription()).status == "canceled"


@pytest.mark.asyncio
async def test_redelivered_payment_after_cancel_is_ignored(client, send_event, seed_user, fetch_user, fetch_subscription):
    """An event from before a local cancel cannot re-grant access when Stripe redelivers it"""
    await seed_user()
    event = make_event(
        "payment_intent.succeeded",
        {"id": "pi_1", "customer": "cus_1", "metadata": {"userId": "user-1", "planType": "lifetime"}},
    )
    await send_event(event)
    assert (await fetch_user()).subscription_status == "lifetime"

    cancel = await client.delete("/api/subscriptions", params={"userId": "user-1"})
    redelivered = await send_event(event)

    assert cancel.status_code == 200
    assert redelivered.status_code == 200
    assert (await fetch_subscription()).status == "canceled"
    assert (await fetch_user()).subscription_status == "free"


@pytest.mark.asyncio
async def test_cancel_unknown_subscription(client):
    response = await client.delete("/api/subscriptions", params={"userId": "nobody"})

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_gateway_customer_email_is_lower_cased():
    gateway = StripeGateway(api_key="sk_test", customer_email_domain="lexiguard.app")
    assert gateway.customer_email_for(" 0xAbC ") == "0xabc@lexiguard.app"


@pytest.mark.asyncio
async def test_gateway_requires_api_key():
    gateway = StripeGateway(api_key=None)
    with pytest.raises(BillingProviderError):
        await gateway.find_or_create_customer("0xabc", "user-1")


def test_gateway_monthly_item_needs_price_or_product():
    assert StripeGateway(api_key="sk_test", price_id="price_1")._monthly_item() == {"price": "price_1"}
    item = StripeGateway(api_key="sk_test", product_id="prod_1", monthly_price_cents=499)._monthly_item()
    assert item["price_data"]["product"] == "prod_1"
    assert item["price_data"]["unit_amount"] == 499
    with pytest.raises(BillingProviderError):
        StripeGateway(api_key="sk_test")._monthly_item()
