import hashlib
import hmac
import os
import sys
import time
from datetime import datetime, timedelta
from decimal import Decimal

# Keep the application's default engine away from the development database file
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

# Add parent directory to path to import the application modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from models_orm import GymORM, PassTypeORM
from rate_limit import FixedWindowRateLimiter, get_validate_rate_limiter
from service_modules.payment_gateway import StripePaymentGateway
from service_modules.gym_service import GymService, get_gym_service
from service_modules.pass_service import PassService, get_pass_service
from service_modules.webhook_service import WebhookService, get_webhook_service
from service_modules.validation_service import ValidationService, get_validation_service
from service_modules.user_service import UserService, get_user_service

WEBHOOK_SECRET = "whsec_test_secret"
QR_SECRET = "qr_test_secret"
RATE_LIMIT = 3


def stripe_signature(raw, secret=WEBHOOK_SECRET, timestamp=None):
    """Stripe-Signature header value the way Stripe signs a delivery."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + raw
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"

# Setup test database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Callable clock returning naive UTC datetimes; tests move it forward."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 15, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeMonotonic:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def fresh_database():
    import models_orm  # noqa: F401
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def gateway():
    # Empty key -> Stripe test mode, no network
    return StripePaymentGateway(api_key="")


@pytest.fixture
def catalog():
    db = TestingSessionLocal()
    gym = GymORM(id="gym-1", name="Veer's Gym", location="Downtown Fitness Hub", qr_identifier="veers-gym-main")
    week = PassTypeORM(id="pt-week", gym_id=gym.id, name="7 Day Pass", duration_days=7, price=Decimal("50.00"), currency="INR")
    day = PassTypeORM(id="pt-day", gym_id=gym.id, name="1 Day Pass", duration_days=1, price=Decimal("10.00"), currency="INR")
    db.add_all([gym, week, day])
    db.commit()
    db.close()
    return {"gym_id": "gym-1", "week": "pt-week", "day": "pt-day", "qr_identifier": "veers-gym-main"}


@pytest.fixture
def pass_service(session_factory, gateway, clock):
    return PassService(
        session_factory=session_factory,
        gateway=gateway,
        clock=clock,
        qr_secret=QR_SECRET,
        allow_multiple_active=True,
        publishable_key="pk_test_123",
    )


@pytest.fixture
def validation_service(session_factory, clock):
    return ValidationService(session_factory=session_factory, clock=clock, qr_secret=QR_SECRET)


@pytest.fixture
def webhook_service(pass_service, session_factory):
    return WebhookService(pass_service=pass_service, session_factory=session_factory, secret=WEBHOOK_SECRET)


@pytest.fixture
def user_service(session_factory, clock):
    return UserService(session_factory=session_factory, clock=clock)


@pytest.fixture
def gym_service(session_factory):
    return GymService(session_factory=session_factory)


@pytest.fixture
def rate_limiter(monotonic):
    return FixedWindowRateLimiter(limit=RATE_LIMIT, window=60, clock=monotonic)


@pytest.fixture
def client(pass_service, validation_service, webhook_service, user_service, gym_service, rate_limiter):
    from main import app

    app.dependency_overrides[get_pass_service] = lambda: pass_service
    app.dependency_overrides[get_validation_service] = lambda: validation_service
    app.dependency_overrides[get_webhook_service] = lambda: webhook_service
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_gym_service] = lambda: gym_service
    app.dependency_overrides[get_validate_rate_limiter] = lambda: rate_limiter

    yield TestClient(app)

    app.dependency_overrides.clear()
