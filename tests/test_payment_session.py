"""Payment session creation against a recording gateway and the provider SDKs."""

from types import SimpleNamespace

import pytest
import razorpay
import requests
import stripe

from storefront.errors import ConfigurationError, UpstreamProviderError
from storefront.models.order import Order
from storefront.services import payment_gateway
from storefront.services.payment_gateway import (
    RazorpayPaymentLinkGateway,
    SessionRequest,
    StripeCheckoutGateway,
)
from storefront.services.payment_service import idempotency_key_for
from storefront.utils.token import decode_order_reference


class TestPaymentSessionApi:
    def test_opens_session_and_marks_order_pending(self, client, session, gateway, make_order):
        order = make_order(paymentMethod="CARD")

        response = client.post("/checkout/payment-session", json={"orderId": order.id})

        assert response.status_code == 200
        assert response.json() == {
            "url": "https://pay.test/session/cs_test_1",
            "sessionId": "cs_test_1",
        }
        session.refresh(order)
        assert order.payment_status == "pending"
        assert order.payment_provider == "fakepay"
        assert order.provider_session_id == "cs_test_1"

        sent = gateway.requests[0]
        assert sent.amount_minor == 125000
        assert sent.currency == "INR"
        assert sent.description == "GreyExim Order (2 items)"
        assert sent.idempotency_key == idempotency_key_for(order.id)
        assert sent.success_url.startswith("https://shop.test/order-success?ref=")
        assert sent.cancel_url == "https://shop.test/checkout?canceled=1"

    def test_retries_send_identical_requests(self, client, gateway, make_order):
        order = make_order(paymentMethod="CARD")

        client.post("/checkout/payment-session", json={"orderId": order.id})
        client.post("/checkout/payment-session", json={"orderId": order.id})

        first, second = gateway.requests
        assert first.idempotency_key == second.idempotency_key
        assert first.success_url == second.success_url
        assert second.existing_session_id == "cs_test_1"

    def test_success_url_reference_points_at_order(self, client, gateway, make_order):
        order = make_order(paymentMethod="CARD")
        client.post("/checkout/payment-session", json={"orderId": order.id})

        ref = gateway.requests[0].success_url.split("ref=", 1)[1]
        assert decode_order_reference(ref) == order.id

    def test_zero_total_is_rejected_without_provider_call(self, client, session, gateway):
        order = Order(
            customer_name="Asha Rao",
            email="asha@example.com",
            phone="9876543210",
            shipping_address="12 MG Road",
            shipping_city="Bengaluru",
            shipping_postal_code="560001",
            subtotal_amount=0,
            total_amount=0,
            payment_method="CARD",
            payment_status="pending",
        )
        session.add(order)
        session.commit()

        response = client.post("/checkout/payment-session", json={"orderId": order.id})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid order amount"
        assert gateway.requests == []

    def test_missing_order_id(self, client):
        response = client.post("/checkout/payment-session", json={})
        assert response.status_code == 400
        assert response.json()["message"] == "orderId required"

    def test_unknown_order(self, client):
        response = client.post("/checkout/payment-session", json={"orderId": "nope"})
        assert response.status_code == 404

    def test_paid_order_gets_no_new_session(self, client, session, gateway, make_order):
        order = make_order(paymentMethod="CARD")
        order.payment_status = "paid"
        session.add(order)
        session.commit()

        response = client.post("/checkout/payment-session", json={"orderId": order.id})

        assert response.status_code == 400
        assert gateway.requests == []

    def test_provider_failure_leaves_order_untouched(self, client, session, gateway, make_order):
        order = make_order(paymentMethod="CARD")
        before = order.updated_at
        gateway.fail = True

        response = client.post("/checkout/payment-session", json={"orderId": order.id})

        assert response.status_code == 500
        assert response.json()["message"] == "Payment session create failed"
        session.refresh(order)
        assert order.provider_session_id is None
        assert order.payment_status == "pending"
        assert order.updated_at == before


def _session_request(**overrides):
    values = dict(
        order_id="ord_1",
        amount_minor=125000,
        currency="INR",
        description="GreyExim Order (2 items)",
        customer_name="Asha Rao",
        customer_email="asha@example.com",
        customer_phone="9876543210",
        success_url="https://shop.test/order-success?ref=abc",
        cancel_url="https://shop.test/checkout?canceled=1",
        idempotency_key="key-1",
    )
    values.update(overrides)
    return SessionRequest(**values)


@pytest.fixture
def stripe_calls(monkeypatch):
    calls = []

    def fake_create(**params):
        calls.append(params)
        return SimpleNamespace(id="cs_live_1", url="https://checkout.stripe.com/c/cs_live_1")

    monkeypatch.setattr(stripe, "default_http_client", None)
    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


def _stripe_raises(monkeypatch, error):
    def fake_create(**params):
        raise error

    monkeypatch.setattr(stripe, "default_http_client", None)
    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)


class TestStripeCheckoutGateway:
    def test_creates_checkout_session(self, stripe_calls):
        gateway = StripeCheckoutGateway(secret_key="sk_test_1", webhook_secret="whsec", timeout=5)

        result = gateway.create_session(_session_request())

        assert result.session_id == "cs_live_1"
        assert result.url == "https://checkout.stripe.com/c/cs_live_1"
        params = stripe_calls[0]
        assert params["api_key"] == "sk_test_1"
        assert params["idempotency_key"] == "key-1"
        assert params["mode"] == "payment"
        price_data = params["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 125000
        assert price_data["currency"] == "inr"
        assert params["metadata"] == {"orderId": "ord_1"}
        assert params["client_reference_id"] == "ord_1"
        assert params["success_url"].endswith("&session_id={CHECKOUT_SESSION_ID}")
        assert isinstance(stripe.default_http_client, stripe.RequestsClient)

    def test_provider_error_is_generic(self, monkeypatch):
        _stripe_raises(
            monkeypatch,
            stripe.InvalidRequestError("card_declined secret detail", param="line_items", http_status=402),
        )
        gateway = StripeCheckoutGateway(secret_key="sk_test_1", webhook_secret="whsec")

        with pytest.raises(UpstreamProviderError) as exc:
            gateway.create_session(_session_request())
        assert exc.value.message == "Payment session create failed"

    def test_connection_error_is_upstream_error(self, monkeypatch):
        _stripe_raises(monkeypatch, stripe.APIConnectionError("Request timed out"))
        gateway = StripeCheckoutGateway(secret_key="sk_test_1", webhook_secret="whsec")

        with pytest.raises(UpstreamProviderError):
            gateway.create_session(_session_request())

    def test_response_without_url_is_upstream_error(self, monkeypatch):
        monkeypatch.setattr(stripe, "default_http_client", None)
        monkeypatch.setattr(
            stripe.checkout.Session, "create", lambda **params: SimpleNamespace(id="cs_1", url=None)
        )
        gateway = StripeCheckoutGateway(secret_key="sk_test_1", webhook_secret="whsec")

        with pytest.raises(UpstreamProviderError):
            gateway.create_session(_session_request())

    def test_missing_secret_key(self):
        gateway = StripeCheckoutGateway(secret_key=None, webhook_secret="whsec")
        with pytest.raises(ConfigurationError, match="STRIPE_SECRET_KEY"):
            gateway.create_session(_session_request())


class _FakePaymentLinks:
    def __init__(self, existing=None, error=None):
        self.existing = existing or {}
        self.error = error
        self.created = []
        self.fetched = []

    def create(self, data):
        if self.error is not None:
            raise self.error
        self.created.append(data)
        return {"id": "plink_1", "short_url": "https://rzp.io/i/abc", "status": "created"}

    def fetch(self, link_id):
        if self.error is not None:
            raise self.error
        self.fetched.append(link_id)
        return self.existing


@pytest.fixture
def payment_links(monkeypatch):
    links = _FakePaymentLinks()
    monkeypatch.setattr(
        payment_gateway.razorpay,
        "Client",
        lambda **kwargs: SimpleNamespace(payment_link=links),
    )
    return links


def _razorpay_gateway():
    return RazorpayPaymentLinkGateway(key_id="rzp_test_1", key_secret="secret", webhook_secret="whsec")


class TestRazorpayPaymentLinkGateway:
    def test_creates_payment_link(self, payment_links):
        key = "k" * 64

        result = _razorpay_gateway().create_session(_session_request(idempotency_key=key))

        assert result.session_id == "plink_1"
        assert result.url == "https://rzp.io/i/abc"
        data = payment_links.created[0]
        assert data["amount"] == 125000
        assert data["currency"] == "INR"
        assert data["reference_id"] == key[:40]
        assert data["notes"] == {"order_id": "ord_1"}
        assert data["customer"]["email"] == "asha@example.com"
        assert data["callback_url"] == "https://shop.test/order-success?ref=abc"
        assert data["callback_method"] == "get"

    def test_reuses_open_link(self, payment_links):
        payment_links.existing = {
            "id": "plink_old",
            "short_url": "https://rzp.io/i/old",
            "status": "created",
        }

        result = _razorpay_gateway().create_session(
            _session_request(existing_session_id="plink_old")
        )

        assert result.session_id == "plink_old"
        assert result.url == "https://rzp.io/i/old"
        assert payment_links.fetched == ["plink_old"]
        assert payment_links.created == []

    def test_refuses_expired_link(self, payment_links):
        payment_links.existing = {
            "id": "plink_old",
            "short_url": "https://rzp.io/i/old",
            "status": "expired",
        }

        with pytest.raises(UpstreamProviderError):
            _razorpay_gateway().create_session(_session_request(existing_session_id="plink_old"))
        assert payment_links.created == []

    def test_bad_request_is_upstream_error(self, payment_links):
        payment_links.error = razorpay.errors.BadRequestError("reference_id already used")

        with pytest.raises(UpstreamProviderError) as exc:
            _razorpay_gateway().create_session(_session_request())
        assert exc.value.message == "Payment session create failed"

    def test_network_failure_is_upstream_error(self, payment_links):
        payment_links.error = requests.ConnectionError("connection reset")

        with pytest.raises(UpstreamProviderError):
            _razorpay_gateway().create_session(_session_request())

    def test_missing_keys(self):
        gateway = RazorpayPaymentLinkGateway(key_id=None, key_secret=None, webhook_secret="whsec")
        with pytest.raises(ConfigurationError, match="RAZORPAY_KEY_ID"):
            gateway.create_session(_session_request())
