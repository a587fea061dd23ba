"""
Pytest configuration and fixtures for testing
"""
import hashlib
import hmac
import json
import time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from database import Base, get_db
from database_models import Subscription, User
from main import app
from routers.billing_router import get_webhook_secret
from services.stripe_gateway import BillingProviderError, get_stripe_gateway

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
async def test_engine(tmp_path):
    """A fresh SQLite file per test, so sessions opened by requests see committed rows."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        # Import models to ensure they're registered with Base
        import database_models  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """
    Fixture that provides an isolated AsyncSession for each test.
    """
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


class FakeStripeGateway:
    """
    Records every provider call. Methods named in `fail_on` raise
    BillingProviderError; `subscriptions` backs retrieve_subscription.
    """

    def __init__(self):
        self.calls = []
        self.fail_on = set()
        self.subscriptions = {}

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            raise BillingProviderError(f"{name} failed")

    def called(self, name):
        return [args for call, args in self.calls if call == name]

    async def find_or_create_customer(self, wallet_address, user_id):
        self._record("find_or_create_customer", wallet_address, user_id)
        return "cus_test"

    async def create_lifetime_payment_intent(self, customer_id, user_id, wallet_address):
        self._record("create_lifetime_payment_intent", customer_id, user_id, wallet_address)
        return {"clientSecret": "pi_life_secret", "paymentIntentId": "pi_life"}

    async def create_monthly_subscription(self, customer_id, user_id, wallet_address):
        self._record("create_monthly_subscription", customer_id, user_id, wallet_address)
        return {"subscriptionId": "sub_new", "clientSecret": "pi_month_secret", "paymentIntentId": "pi_month"}

    async def retrieve_subscription(self, stripe_subscription_id):
        self._record("retrieve_subscription", stripe_subscription_id)
        return self.subscriptions[stripe_subscription_id]

    async def cancel_subscription(self, stripe_subscription_id):
        self._record("cancel_subscription", stripe_subscription_id)
        return {"id": stripe_subscription_id, "status": "canceled"}


@pytest.fixture
def fake_gateway():
    return FakeStripeGateway()


@pytest.fixture
async def client(session_factory, fake_gateway):
    """HTTP client against the app, wired to the test database and fake Stripe."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def sign_payload(body: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{body}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def make_event(event_type: str, obj: dict, created: int = 1_700_000_000, event_id: str = "evt_test") -> dict:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": created,
        "data": {"object": obj},
    }


@pytest.fixture
def send_event(client):
    """POST a signed event to the webhook endpoint."""

    async def _send(event: dict):
        body = json.dumps(event)
        return await client.post(
            "/api/webhooks/stripe",
            content=body,
            headers={"Stripe-Signature": sign_payload(body), "Content-Type": "application/json"},
        )

    return _send


@pytest.fixture
def seed_user(session_factory):
    """Insert a user directly and return its id."""

    async def _seed(user_id="user-1", wallet_address="0xabc", subscription_status="free"):
        async with session_factory() as session:
            session.add(User(
                user_id=user_id,
                wallet_address=wallet_address,
                subscription_status=subscription_status,
                preferred_language="en",
                trusted_contacts=[],
            ))
            await session.commit()
        return user_id

    return _seed


@pytest.fixture
def seed_subscription(session_factory):

    async def _seed(user_id="user-1", **values):
        async with session_factory() as session:
            session.add(Subscription(user_id=user_id, **values))
            await session.commit()

    return _seed


@pytest.fixture
def fetch_user(session_factory):

    async def _fetch(user_id="user-1"):
        async with session_factory() as session:
            return await session.get(User, user_id)

    return _fetch


@pytest.fixture
def fetch_subscription(session_factory):

    async def _fetch(user_id="user-1"):
        async with session_factory() as session:
            result = await session.execute(select(Subscription).where(Subscription.user_id == user_id))
            return result.scalar_one_or_none()

    return _fetch
