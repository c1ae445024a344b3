import os

# settings are read at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_PASSWORD", "letmein")
os.environ.setdefault("BASE_URL", "https://shop.test")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_123")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_123")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_secret_123")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "rzp_whsec_123")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import storefront.models  # noqa: F401
from storefront.database import get_session
from storefront.errors import UpstreamProviderError
from storefront.main import app
from storefront.models.user import User
from storefront.schemas.order_schemas import OrderCreate
from storefront.services.order_ledger import create_order
from storefront.services.payment_gateway import (
    SESSION_CREATE_FAILED,
    PaymentGateway,
    PaymentSession,
    StripeCheckoutGateway,
    get_payment_gateway,
    get_stripe_gateway,
)
from storefront.utils.token import create_access_token, create_admin_token

STRIPE_WEBHOOK_SECRET = "whsec_test_123"


class FakeGateway(PaymentGateway):
    """Records session requests instead of calling a provider."""

    name = "fakepay"

    def __init__(self):
        self.requests = []
        self.fail = False

    def create_session(self, request):
        self.requests.append(request)
        if self.fail:
            raise UpstreamProviderError(SESSION_CREATE_FAILED)
        number = len(self.requests)
        return PaymentSession(
            session_id=f"cs_test_{number}",
            url=f"https://pay.test/session/cs_test_{number}",
        )


def order_payload(**overrides):
    payload = {
        "customerName": "Asha Rao",
        "email": "asha@example.com",
        "phone": "9876543210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "postalCode": "560001",
        "country": "India",
        "cartItems": [
            {"designName": "Indigo Paisley", "designCode": "GX-1", "price": 500, "qty": 2},
            {"designName": "Rust Check", "designCode": "GX-2", "price": 250, "qty": 1},
        ],
        "paymentMethod": "COD",
    }
    payload.update(overrides)
    return payload


def checkout_payload(**overrides):
    payload = {
        "items": [
            {"designName": "Indigo Paisley", "designCode": "GX-1", "price": 500, "qty": 2},
        ],
        "shipping": {
            "fullName": "Asha Rao",
            "email": "asha@example.com",
            "phone": "9876543210",
            "address": "12 MG Road",
            "city": "Bengaluru",
            "postalCode": "560001",
            "country": "India",
        },
        "deliverySpeed": "standard",
        "paymentMethod": "COD",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def stripe_gateway():
    return StripeCheckoutGateway(
        secret_key="sk_test_123",
        webhook_secret=STRIPE_WEBHOOK_SECRET,
    )


@pytest.fixture()
def client(engine, gateway, stripe_gateway):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def user(session):
    user = User(name="Asha Rao", email="asha@example.com", phone="9876543210")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def other_user(session):
    user = User(name="Ravi Iyer", email="ravi@example.com")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def user_headers(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token()}"}


@pytest.fixture()
def make_order(session):
    def _make(**overrides):
        order, _ = create_order(session, OrderCreate.model_validate(order_payload(**overrides)))
        return order
    return _make
